from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, EventAttendanceInfo, record_key


class AttendanceRepository(Protocol):
    def get(self, event_id: str, user_email: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def put(self, record: AttendanceRecord) -> None:
        raise NotImplementedError

    def all_records(self) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def records_for_event(self, event_id: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_event(self, event_id: str) -> Optional[EventAttendanceInfo]:
        raise NotImplementedError

    def put_event(self, info: EventAttendanceInfo) -> None:
        raise NotImplementedError

    def all_events(self) -> Sequence[EventAttendanceInfo]:
        raise NotImplementedError

    def recompute_counters(self, event_id: str) -> Optional[EventAttendanceInfo]:
        raise NotImplementedError

    def to_snapshot(self) -> dict:
        raise NotImplementedError

    def replace_from_snapshot(self, data: dict) -> None:
        raise NotImplementedError


class InMemoryAttendanceRepository(AttendanceRepository):
    """Authoritative in-memory state: records by composite key, events by id.

    Dict insertion order is the "original iteration order" used for stable ties.
    """

    def __init__(self):
        self._records: Dict[str, AttendanceRecord] = {}
        self._events: Dict[str, EventAttendanceInfo] = {}

    def get(self, event_id: str, user_email: str) -> Optional[AttendanceRecord]:
        return self._records.get(record_key(event_id, user_email))

    def put(self, record: AttendanceRecord) -> None:
        self._records[record.key] = record

    def all_records(self) -> List[AttendanceRecord]:
        return list(self._records.values())

    def records_for_event(self, event_id: str) -> List[AttendanceRecord]:
        return [r for r in self._records.values() if r.event_id == event_id]

    def get_event(self, event_id: str) -> Optional[EventAttendanceInfo]:
        return self._events.get(event_id)

    def put_event(self, info: EventAttendanceInfo) -> None:
        self._events[info.event_id] = info

    def all_events(self) -> List[EventAttendanceInfo]:
        return list(self._events.values())

    def recompute_counters(self, event_id: str) -> Optional[EventAttendanceInfo]:
        info = self._events.get(event_id)
        if info is None:
            return None

        statuses = [r.status for r in self.records_for_event(event_id)]
        info = replace(
            info,
            total_registered=sum(1 for s in statuses if s != AttendanceStatus.CANCELLED),
            total_present=statuses.count(AttendanceStatus.PRESENT),
            total_no_show=statuses.count(AttendanceStatus.NO_SHOW),
            total_checked_out=statuses.count(AttendanceStatus.CHECKED_OUT),
        )
        self._events[event_id] = info
        return info

    def to_snapshot(self) -> dict:
        return {
            "attendance_records": {key: r.to_dict() for key, r in self._records.items()},
            "event_infos": {event_id: e.to_dict() for event_id, e in self._events.items()},
        }

    def replace_from_snapshot(self, data: dict) -> None:
        """Swap in snapshot content; counters are rebuilt, stored ones are ignored."""
        records = [AttendanceRecord.from_dict(r) for r in (data.get("attendance_records") or {}).values()]
        events = [EventAttendanceInfo.from_dict(e) for e in (data.get("event_infos") or {}).values()]

        self._records = {r.key: r for r in records}
        self._events = {e.event_id: e for e in events}
        for event_id in list(self._events):
            self.recompute_counters(event_id)
