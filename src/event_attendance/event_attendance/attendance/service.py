from __future__ import annotations

import json
import logging
import threading
from dataclasses import replace
from datetime import date
from typing import Any, Callable, List, Optional

from ..common.datetime_utils import Clock, as_datetime, now_local
from ..common.events import ChangeChannel
from ..common.validators import normalize_email, require_email, require_json_value, require_non_empty
from ..core.constants import ATTENDANCE_SNAPSHOT_KEY
from ..core.enums import AttendanceStatus
from ..core.exceptions import (
    CapacityExceededError,
    DomainError,
    DuplicateRegistrationError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)
from ..storage.writer import SnapshotWriter
from .model import (
    AttendanceRecord,
    AttendanceSearchFilter,
    AttendanceStatistics,
    CheckInRequest,
    EventAttendanceInfo,
    MutationResult,
)
from .repository import AttendanceRepository, InMemoryAttendanceRepository
from .statistics import AttendanceStatisticsCalculator
from .transitions import AttendanceAction, next_status

logger = logging.getLogger(__name__)


class AttendanceService:
    """Use case: attendance lifecycle for events.

    Every mutation runs under one lock and, on success, does three things in
    order: rebuild the event's counters, publish the record on
    ``attendance_changed``, queue a full snapshot on the writer. Business
    rejections come back as a falsy :class:`MutationResult`; nothing is raised.
    """

    def __init__(
        self,
        repository: Optional[AttendanceRepository] = None,
        *,
        writer: Optional[SnapshotWriter] = None,
        snapshot_key: str = ATTENDANCE_SNAPSHOT_KEY,
        clock: Optional[Clock] = None,
        calculator: Optional[AttendanceStatisticsCalculator] = None,
    ):
        self._repo = repository or InMemoryAttendanceRepository()
        self._writer = writer
        self._snapshot_key = snapshot_key
        self._clock = clock or now_local
        self._calculator = calculator or AttendanceStatisticsCalculator()
        self._lock = threading.RLock()
        self.attendance_changed: ChangeChannel[AttendanceRecord] = ChangeChannel("attendance_changed")

    # region Events
    def add_event(
        self,
        event_id: str,
        event_name: str,
        *,
        event_date: Optional[date] = None,
        event_location: str = "",
        max_capacity: int,
    ) -> EventAttendanceInfo:
        """Create or replace event metadata. Raises ValidationError on bad input."""
        event_id = require_non_empty(event_id, "Event id")
        if int(max_capacity) < 1:
            raise ValidationError("Max capacity must be at least 1")

        with self._lock:
            self._repo.put_event(
                EventAttendanceInfo(
                    event_id=event_id,
                    event_name=(event_name or "").strip(),
                    event_date=event_date,
                    event_location=(event_location or "").strip(),
                    max_capacity=int(max_capacity),
                )
            )
            info = self._repo.recompute_counters(event_id)
            self._persist()
        return info

    def get_event_info(self, event_id: str) -> Optional[EventAttendanceInfo]:
        with self._lock:
            return self._repo.get_event(event_id)

    def list_events(self) -> List[EventAttendanceInfo]:
        with self._lock:
            return list(self._repo.all_events())

    # endregion

    # region Mutations
    def register(self, event_id: str, user_id: str, user_name: str, user_email: str) -> MutationResult:
        def build() -> AttendanceRecord:
            require_non_empty(event_id, "Event id")
            email = require_email(user_email, "User email")

            if self._repo.get(event_id, email):
                raise DuplicateRegistrationError(f"{email} is already registered for {event_id}")

            info = self._repo.get_event(event_id)
            if info is not None and info.total_registered >= info.max_capacity:
                raise CapacityExceededError(f"Event {event_id} is full")

            return AttendanceRecord(
                event_id=event_id,
                user_id=user_id,
                user_name=user_name,
                user_email=email,
                status=AttendanceStatus.REGISTERED,
                registered_at=self._clock(),
            )

        return self._mutate("register", build)

    def check_in(self, request: CheckInRequest) -> MutationResult:
        def build() -> AttendanceRecord:
            record = self._require(request.event_id, request.user_email)
            return replace(
                record,
                status=next_status(AttendanceAction.CHECK_IN, record.status),
                check_in_time=self._clock(),
                check_out_time=None,
                notes=request.notes,
                is_vip=bool(request.is_vip),
                seat_number=request.seat_number,
            )

        return self._mutate("check_in", build)

    def check_out(self, event_id: str, user_email: str) -> MutationResult:
        def build() -> AttendanceRecord:
            record = self._require(event_id, user_email)
            return replace(
                record,
                status=next_status(AttendanceAction.CHECK_OUT, record.status),
                check_out_time=self._clock(),
            )

        return self._mutate("check_out", build)

    def mark_no_show(self, event_id: str, user_email: str) -> MutationResult:
        return self._transition("mark_no_show", AttendanceAction.NO_SHOW, event_id, user_email)

    def cancel_registration(self, event_id: str, user_email: str) -> MutationResult:
        return self._transition("cancel_registration", AttendanceAction.CANCEL, event_id, user_email)

    def update_notes(self, event_id: str, user_email: str, notes: Optional[str]) -> MutationResult:
        def build() -> AttendanceRecord:
            return replace(self._require(event_id, user_email), notes=notes)

        return self._mutate("update_notes", build)

    def set_custom_field(self, event_id: str, user_email: str, key: str, value: Any) -> MutationResult:
        def build() -> AttendanceRecord:
            record = self._require(event_id, user_email)
            field_name = require_non_empty(key, "Custom field name")
            fields = dict(record.custom_fields)
            fields[field_name] = require_json_value(value, field_name)
            return replace(record, custom_fields=fields)

        return self._mutate("set_custom_field", build)

    def _transition(self, op: str, action: AttendanceAction, event_id: str, user_email: str) -> MutationResult:
        def build() -> AttendanceRecord:
            record = self._require(event_id, user_email)
            return replace(record, status=next_status(action, record.status))

        return self._mutate(op, build)

    def _require(self, event_id: str, user_email: str) -> AttendanceRecord:
        record = self._repo.get(event_id, user_email)
        if not record:
            raise RecordNotFoundError(f"No registration of {user_email} for {event_id}")
        return record

    def _mutate(self, op: str, build: Callable[[], AttendanceRecord]) -> MutationResult:
        with self._lock:
            try:
                record = build()
            except DomainError as e:
                logger.info("%s rejected: %s", op, e)
                return MutationResult.failure(str(e))

            self._repo.put(record)
            self._repo.recompute_counters(record.event_id)
            self.attendance_changed.publish(record)
            self._persist()

        logger.debug("%s applied to %s (%s)", op, record.key, record.status.value)
        return MutationResult.success(record)

    # endregion

    # region Queries
    def get_record(self, event_id: str, user_email: str) -> Optional[AttendanceRecord]:
        with self._lock:
            return self._repo.get(event_id, user_email)

    def get_event_attendance(self, event_id: str) -> List[AttendanceRecord]:
        with self._lock:
            records = self._repo.records_for_event(event_id)
        return sorted(records, key=lambda r: r.registered_at)

    def get_user_history(self, user_email: str) -> List[AttendanceRecord]:
        email = normalize_email(user_email)
        with self._lock:
            records = [r for r in self._repo.all_records() if normalize_email(r.user_email) == email]
        return sorted(records, key=lambda r: r.registered_at, reverse=True)

    def search(self, search_filter: AttendanceSearchFilter) -> List[AttendanceRecord]:
        f = search_filter
        email_part = (f.user_email or "").strip().lower()
        term = (f.search_term or "").strip().lower()
        lower = as_datetime(f.from_date) if f.from_date else None
        upper = as_datetime(f.to_date, upper=True) if f.to_date else None

        def matches(r: AttendanceRecord) -> bool:
            if f.event_id and r.event_id != f.event_id:
                return False
            if email_part and email_part not in r.user_email.lower():
                return False
            if f.status is not None and r.status != f.status:
                return False
            if lower and r.registered_at < lower:
                return False
            if upper and r.registered_at > upper:
                return False
            if f.is_vip is not None and r.is_vip != f.is_vip:
                return False
            if term and term not in r.user_name.lower() and term not in r.user_email.lower():
                return False
            return True

        with self._lock:
            records = [r for r in self._repo.all_records() if matches(r)]
        return sorted(records, key=lambda r: r.registered_at)

    def statistics(self) -> AttendanceStatistics:
        with self._lock:
            records = self._repo.all_records()
            events = {e.event_id: e for e in self._repo.all_events()}
        return self._calculator.build(records, events)

    # endregion

    # region Persistence
    def _persist(self) -> None:
        if self._writer is None:
            return
        # Serialised under the lock so the queued payload matches this mutation.
        self._writer.save(self._snapshot_key, json.dumps(self._repo.to_snapshot()))

    def load_snapshot(self) -> bool:
        """Replace in-memory state with the persisted snapshot, if one is readable."""
        if self._writer is None:
            return False

        try:
            raw = self._writer.store.get(self._snapshot_key)
            if not raw:
                logger.debug("No attendance snapshot under %r", self._snapshot_key)
                return False
            data = json.loads(raw)
            with self._lock:
                self._repo.replace_from_snapshot(data)
        except (PersistenceError, ValueError, KeyError, TypeError, AttributeError):
            logger.warning("Attendance snapshot %r could not be restored", self._snapshot_key, exc_info=True)
            return False

        logger.info("Attendance snapshot restored (%d events)", len(self.list_events()))
        return True

    # endregion
