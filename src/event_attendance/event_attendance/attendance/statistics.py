from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Mapping, Tuple

from ..common.validators import normalize_email
from ..core.constants import DEFAULT_TOP_ATTENDEES
from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, AttendanceStatistics, EventAttendanceInfo, TopAttendee


class AttendanceStatisticsCalculator:
    """Global rollup over the full record set.

    Groupings keep first-seen order of the input records, and ranking uses a
    stable sort, so ties stay in iteration order.
    """

    def __init__(self, *, top_n: int = DEFAULT_TOP_ATTENDEES):
        self._top_n = int(top_n)

    def build(
        self,
        records: Iterable[AttendanceRecord],
        events: Mapping[str, EventAttendanceInfo],
    ) -> AttendanceStatistics:
        records = list(records)
        present = [r for r in records if r.is_present]
        registrations = sum(1 for r in records if r.status != AttendanceStatus.CANCELLED)

        return AttendanceStatistics(
            total_events=len(events),
            total_registrations=registrations,
            total_attendees=len(present),
            overall_attendance_rate=len(present) / registrations * 100 if registrations else 0.0,
            attendance_by_status=self._by_status(records),
            attendance_by_event=self._by_event(records, present, events),
            attendance_by_date=self._by_date(present),
            top_attendees=self._top_attendees(records, present),
        )

    @staticmethod
    def _by_status(records: List[AttendanceRecord]) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for r in records:
            out[r.status.value] = out.get(r.status.value, 0) + 1
        return out

    @staticmethod
    def _by_event(
        records: List[AttendanceRecord],
        present: List[AttendanceRecord],
        events: Mapping[str, EventAttendanceInfo],
    ) -> Dict[str, float]:
        totals: Dict[str, int] = {}
        for r in records:
            totals[r.event_id] = totals.get(r.event_id, 0) + 1

        present_counts: Dict[str, int] = {}
        for r in present:
            present_counts[r.event_id] = present_counts.get(r.event_id, 0) + 1

        out: Dict[str, float] = {}
        for event_id, count in present_counts.items():
            info = events.get(event_id)
            label = info.event_name if info and info.event_name else event_id
            out[label] = count / totals[event_id] * 100
        return out

    @staticmethod
    def _by_date(present: List[AttendanceRecord]) -> Dict[date, int]:
        out: Dict[date, int] = {}
        for r in present:
            if r.check_in_time is None:
                continue
            day = r.check_in_time.date()
            out[day] = out.get(day, 0) + 1
        return out

    def _top_attendees(self, records: List[AttendanceRecord], present: List[AttendanceRecord]) -> List[TopAttendee]:
        registrations: Dict[str, int] = {}
        for r in records:
            if r.status != AttendanceStatus.CANCELLED:
                email = normalize_email(r.user_email)
                registrations[email] = registrations.get(email, 0) + 1

        attended: Dict[Tuple[str, str, str], int] = {}
        for r in present:
            identity = (r.user_id, r.user_name, r.user_email)
            attended[identity] = attended.get(identity, 0) + 1

        ranked = sorted(attended.items(), key=lambda item: item[1], reverse=True)[: self._top_n]

        out: List[TopAttendee] = []
        for (user_id, user_name, user_email), count in ranked:
            total = registrations.get(normalize_email(user_email), 0)
            out.append(
                TopAttendee(
                    user_id=user_id,
                    user_name=user_name,
                    user_email=user_email,
                    events_attended=count,
                    attendance_rate=min(count / total * 100, 100.0) if total else 0.0,
                )
            )
        return out
