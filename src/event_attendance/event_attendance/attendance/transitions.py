"""Status transition rules for attendance records."""

from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet

from ..core.enums import AttendanceStatus
from ..core.exceptions import InvalidTransitionError

_ANY = frozenset(AttendanceStatus)


class AttendanceAction(str, Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    NO_SHOW = "no_show"
    CANCEL = "cancel"


# Check-in accepts every status except Present, so a NoShow/Cancelled/CheckedOut
# record can be reopened. No-show and cancel overwrite unconditionally.
ALLOWED_FROM: Dict[AttendanceAction, FrozenSet[AttendanceStatus]] = {
    AttendanceAction.CHECK_IN: _ANY - {AttendanceStatus.PRESENT},
    AttendanceAction.CHECK_OUT: frozenset({AttendanceStatus.PRESENT}),
    AttendanceAction.NO_SHOW: _ANY,
    AttendanceAction.CANCEL: _ANY,
}

TARGET: Dict[AttendanceAction, AttendanceStatus] = {
    AttendanceAction.CHECK_IN: AttendanceStatus.PRESENT,
    AttendanceAction.CHECK_OUT: AttendanceStatus.CHECKED_OUT,
    AttendanceAction.NO_SHOW: AttendanceStatus.NO_SHOW,
    AttendanceAction.CANCEL: AttendanceStatus.CANCELLED,
}


def next_status(action: AttendanceAction, current: AttendanceStatus) -> AttendanceStatus:
    if current not in ALLOWED_FROM[action]:
        raise InvalidTransitionError(f"Cannot {action.value} a record that is {current.value}")
    return TARGET[action]
