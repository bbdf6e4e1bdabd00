from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from ..common.datetime_utils import format_iso, parse_iso_datetime
from ..common.validators import normalize_email
from ..core.enums import AttendanceStatus


def record_key(event_id: str, user_email: str) -> str:
    """Composite key of a record: event id plus case-insensitive email."""
    return f"{event_id}_{normalize_email(user_email)}"


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one user's attendance at one event.

    Frozen: status changes produce a replaced copy with the same key.
    """

    event_id: str
    user_id: str
    user_name: str
    user_email: str
    status: AttendanceStatus = AttendanceStatus.REGISTERED
    registered_at: datetime = field(default_factory=datetime.now)
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    notes: Optional[str] = None
    is_vip: bool = False
    seat_number: Optional[str] = None
    custom_fields: Dict[str, Any] = field(default_factory=dict)
    record_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def key(self) -> str:
        return record_key(self.event_id, self.user_email)

    @property
    def attendance_duration(self) -> Optional[timedelta]:
        if self.check_in_time and self.check_out_time:
            return self.check_out_time - self.check_in_time
        return None

    @property
    def is_present(self) -> bool:
        return self.status.is_present

    def to_dict(self) -> dict:
        return {
            "id": self.record_id,
            "event_id": self.event_id,
            "user_id": self.user_id,
            "user_name": self.user_name,
            "user_email": self.user_email,
            "status": self.status.value,
            "registered_at": format_iso(self.registered_at),
            "check_in_time": format_iso(self.check_in_time),
            "check_out_time": format_iso(self.check_out_time),
            "notes": self.notes,
            "is_vip": self.is_vip,
            "seat_number": self.seat_number,
            "custom_fields": dict(self.custom_fields),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AttendanceRecord":
        return cls(
            record_id=str(data.get("id") or uuid.uuid4()),
            event_id=str(data["event_id"]),
            user_id=str(data.get("user_id") or ""),
            user_name=str(data.get("user_name") or ""),
            user_email=str(data["user_email"]),
            status=AttendanceStatus(data.get("status", AttendanceStatus.REGISTERED.value)),
            registered_at=parse_iso_datetime(data.get("registered_at")) or datetime.now(),
            check_in_time=parse_iso_datetime(data.get("check_in_time")),
            check_out_time=parse_iso_datetime(data.get("check_out_time")),
            notes=data.get("notes"),
            is_vip=bool(data.get("is_vip", False)),
            seat_number=data.get("seat_number"),
            custom_fields=dict(data.get("custom_fields") or {}),
        )


@dataclass(frozen=True)
class EventAttendanceInfo:
    """Event metadata plus counters derived from its records.

    Counters are never patched in place; the record store rebuilds them from
    the full record set after every mutation.
    """

    event_id: str
    event_name: str
    event_date: Optional[date]
    event_location: str
    max_capacity: int
    total_registered: int = 0
    total_present: int = 0
    total_no_show: int = 0
    total_checked_out: int = 0

    @property
    def attendance_rate(self) -> float:
        return self.total_present / self.total_registered * 100 if self.total_registered else 0.0

    @property
    def attendance_percentage(self) -> float:
        return self.attendance_rate

    @property
    def no_show_rate(self) -> float:
        return self.total_no_show / self.total_registered * 100 if self.total_registered else 0.0

    @property
    def available_spots(self) -> int:
        return self.max_capacity - self.total_registered

    @property
    def is_full(self) -> bool:
        return self.total_registered >= self.max_capacity

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "event_name": self.event_name,
            "event_date": self.event_date.isoformat() if self.event_date else None,
            "event_location": self.event_location,
            "max_capacity": self.max_capacity,
            "total_registered": self.total_registered,
            "total_present": self.total_present,
            "total_no_show": self.total_no_show,
            "total_checked_out": self.total_checked_out,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "EventAttendanceInfo":
        event_date = data.get("event_date")
        return cls(
            event_id=str(data["event_id"]),
            event_name=str(data.get("event_name") or ""),
            event_date=date.fromisoformat(event_date) if event_date else None,
            event_location=str(data.get("event_location") or ""),
            max_capacity=int(data.get("max_capacity") or 0),
            total_registered=int(data.get("total_registered") or 0),
            total_present=int(data.get("total_present") or 0),
            total_no_show=int(data.get("total_no_show") or 0),
            total_checked_out=int(data.get("total_checked_out") or 0),
        )


@dataclass(frozen=True)
class CheckInRequest:
    event_id: str
    user_email: str
    notes: Optional[str] = None
    is_vip: bool = False
    seat_number: Optional[str] = None


@dataclass(frozen=True)
class AttendanceSearchFilter:
    """All fields optional; the ones given are combined with AND."""

    event_id: Optional[str] = None
    user_email: Optional[str] = None
    status: Optional[AttendanceStatus] = None
    from_date: Optional[date | datetime] = None
    to_date: Optional[date | datetime] = None
    is_vip: Optional[bool] = None
    search_term: Optional[str] = None


@dataclass(frozen=True)
class TopAttendee:
    user_id: str
    user_name: str
    user_email: str
    events_attended: int
    attendance_rate: float


@dataclass(frozen=True)
class AttendanceStatistics:
    total_events: int
    total_registrations: int
    total_attendees: int
    overall_attendance_rate: float
    attendance_by_status: Dict[str, int]
    attendance_by_event: Dict[str, float]
    attendance_by_date: Dict[date, int]
    top_attendees: List[TopAttendee]


@dataclass(frozen=True)
class MutationResult:
    """Outcome of an attendance mutation; truthy only on success."""

    ok: bool
    record: Optional[AttendanceRecord] = None
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, record: AttendanceRecord) -> "MutationResult":
        return cls(ok=True, record=record)

    @classmethod
    def failure(cls, reason: str) -> "MutationResult":
        return cls(ok=False, reason=reason)
