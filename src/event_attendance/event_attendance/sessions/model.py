from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from ..common.datetime_utils import format_iso, parse_iso_datetime
from ..core.constants import DEFAULT_LANGUAGE


@dataclass
class UserSession:
    """What we keep for the logged-in user; persisted as JSON under its own key."""

    user_id: str
    email: str
    full_name: str
    login_time: datetime
    last_activity: datetime
    is_authenticated: bool = False
    session_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def user_name(self) -> str:
        return self.full_name

    @property
    def is_logged_in(self) -> bool:
        return self.is_authenticated

    def session_duration(self, now: datetime) -> timedelta:
        return now - self.login_time

    def is_expired(self, now: datetime, timeout: timedelta) -> bool:
        return now - self.last_activity > timeout

    def touch(self, now: datetime) -> None:
        self.last_activity = now

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "full_name": self.full_name,
            "login_time": format_iso(self.login_time),
            "last_activity": format_iso(self.last_activity),
            "is_authenticated": self.is_authenticated,
            "session_data": dict(self.session_data),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserSession":
        login_time = parse_iso_datetime(data["login_time"])
        if login_time is None:
            raise ValueError("Session without login_time")
        return cls(
            user_id=str(data["user_id"]),
            email=str(data.get("email") or ""),
            full_name=str(data.get("full_name") or ""),
            login_time=login_time,
            last_activity=parse_iso_datetime(data.get("last_activity")) or login_time,
            is_authenticated=bool(data.get("is_authenticated", False)),
            session_data=dict(data.get("session_data") or {}),
        )


@dataclass
class UserProfile:
    """Domain entity: a user's profile. Outlives sessions.

    ``password_hash`` is a werkzeug hash for registered users and ``None`` for
    demo profiles, which log in with the configured demo passwords.
    """

    user_id: str
    first_name: str
    last_name: str
    email: str
    phone: str = ""
    date_of_birth: Optional[date] = None
    address: str = ""
    registration_date: datetime = field(default_factory=datetime.now)
    registered_events: List[str] = field(default_factory=list)
    preferred_language: str = DEFAULT_LANGUAGE
    email_notifications: bool = True
    sms_notifications: bool = False
    password_hash: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_public_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "date_of_birth": self.date_of_birth.isoformat() if self.date_of_birth else None,
            "address": self.address,
            "registration_date": format_iso(self.registration_date),
            "registered_events": list(self.registered_events),
            "preferred_language": self.preferred_language,
            "email_notifications": self.email_notifications,
            "sms_notifications": self.sms_notifications,
        }


@dataclass(frozen=True)
class UserRegistration:
    first_name: str
    last_name: str
    email: str
    password: str
    phone: str = ""
    date_of_birth: Optional[date] = None
    address: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def is_adult(self, today: date) -> bool:
        if self.date_of_birth is None:
            return False
        born = self.date_of_birth
        age = today.year - born.year - ((today.month, today.day) < (born.month, born.day))
        return age >= 18
