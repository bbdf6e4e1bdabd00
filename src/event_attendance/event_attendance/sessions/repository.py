from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from ..common.validators import normalize_email
from .model import UserProfile, UserSession


class ProfileRepository(Protocol):
    def get_by_email(self, email: str) -> Optional[UserProfile]:
        raise NotImplementedError

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        raise NotImplementedError

    def save(self, profile: UserProfile) -> None:
        raise NotImplementedError

    def delete_by_email(self, email: str) -> bool:
        raise NotImplementedError

    def list_all(self) -> List[UserProfile]:
        raise NotImplementedError


class InMemoryProfileRepository(ProfileRepository):
    """Profile directory keyed by case-insensitive email."""

    def __init__(self):
        self._by_email: Dict[str, UserProfile] = {}

    def get_by_email(self, email: str) -> Optional[UserProfile]:
        return self._by_email.get(normalize_email(email))

    def get_by_id(self, user_id: str) -> Optional[UserProfile]:
        return next((p for p in self._by_email.values() if p.user_id == user_id), None)

    def save(self, profile: UserProfile) -> None:
        self._by_email[normalize_email(profile.email)] = profile

    def delete_by_email(self, email: str) -> bool:
        return self._by_email.pop(normalize_email(email), None) is not None

    def list_all(self) -> List[UserProfile]:
        return list(self._by_email.values())


@dataclass
class SessionSlot:
    """Holder of the current session for one context (app, test, ...)."""

    current: Optional[UserSession] = None

    def clear(self) -> None:
        self.current = None
