from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Lifecycle state of one attendance record."""

    REGISTERED = "Registered"
    PRESENT = "Present"
    CHECKED_OUT = "CheckedOut"
    NO_SHOW = "NoShow"
    CANCELLED = "Cancelled"

    @property
    def is_present(self) -> bool:
        return self in {AttendanceStatus.PRESENT, AttendanceStatus.CHECKED_OUT}


class StoreBackend(str, Enum):
    """Durable store implementations selectable from settings."""

    MEMORY = "memory"
    MYSQL = "mysql"
