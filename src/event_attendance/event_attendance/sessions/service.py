from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Optional, TypeVar

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.datetime_utils import Clock, now_local
from ..common.events import ChangeChannel
from ..common.validators import normalize_email, require_email, require_json_value, require_non_empty
from ..core.constants import DEFAULT_DEMO_PASSWORDS, DEFAULT_SESSION_TIMEOUT_MINUTES, SESSION_SNAPSHOT_KEY
from ..core.exceptions import AuthenticationError, DomainError, PersistenceError, ValidationError
from ..storage.writer import SnapshotWriter
from .model import UserProfile, UserRegistration, UserSession
from .repository import InMemoryProfileRepository, ProfileRepository, SessionSlot

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SessionManager:
    """Use case: login state of one context plus the profile directory.

    The current session lives in an explicit :class:`SessionSlot`; pass the same
    slot to share it, or a fresh one to isolate (tests). Expiry is checked
    lazily by :meth:`is_session_valid` and never clears the slot.
    """

    def __init__(
        self,
        profiles: Optional[ProfileRepository] = None,
        *,
        slot: Optional[SessionSlot] = None,
        writer: Optional[SnapshotWriter] = None,
        snapshot_key: str = SESSION_SNAPSHOT_KEY,
        clock: Optional[Clock] = None,
        timeout: timedelta = timedelta(minutes=DEFAULT_SESSION_TIMEOUT_MINUTES),
        demo_passwords: Iterable[str] = DEFAULT_DEMO_PASSWORDS,
    ):
        self._profiles = profiles or InMemoryProfileRepository()
        self._slot = slot if slot is not None else SessionSlot()
        self._writer = writer
        self._snapshot_key = snapshot_key
        self._clock = clock or now_local
        self._timeout = timeout
        self._demo_passwords = frozenset(demo_passwords)
        self._lock = threading.RLock()
        self.session_changed: ChangeChannel[Optional[UserSession]] = ChangeChannel("session_changed")

    @property
    def current_session(self) -> Optional[UserSession]:
        return self._slot.current

    @property
    def timeout(self) -> timedelta:
        return self._timeout

    def now(self) -> datetime:
        return self._clock()

    # region Authentication
    def login(self, email: str, password: str) -> bool:
        with self._lock:
            try:
                profile = self._authenticate(email, password)
            except AuthenticationError as e:
                logger.info("Login rejected for %s: %s", email, e)
                return False

            self._open_session(profile.user_id, profile.email, profile.full_name)
        return True

    def _authenticate(self, email: str, password: str) -> UserProfile:
        profile = self._profiles.get_by_email(email)
        if not profile:
            raise AuthenticationError("Invalid email or password")

        if profile.password_hash:
            try:
                ok = check_password_hash(profile.password_hash, password or "")
            except (ValueError, TypeError):
                # e.g. placeholder or corrupted hashes
                ok = False
        else:
            # TODO: demo profiles share fixed passwords; drop once every profile carries a hash.
            ok = password in self._demo_passwords

        if not ok:
            raise AuthenticationError("Invalid email or password")
        return profile

    def logout(self) -> None:
        with self._lock:
            self._slot.clear()
            self.session_changed.publish(None)
            if self._writer is not None:
                self._writer.remove(self._snapshot_key)

    def register_user(self, registration: UserRegistration) -> bool:
        """Create a profile and log it in. False if the email is taken or input is invalid."""
        with self._lock:
            try:
                email = require_email(registration.email)
                require_non_empty(registration.password, "Password")
                if self._profiles.get_by_email(email):
                    raise ValidationError(f"A profile for {email} already exists")
            except DomainError as e:
                logger.info("Registration rejected: %s", e)
                return False

            now = self._clock()
            profile = UserProfile(
                user_id=str(uuid.uuid4()),
                first_name=registration.first_name.strip(),
                last_name=registration.last_name.strip(),
                email=email,
                phone=registration.phone,
                date_of_birth=registration.date_of_birth,
                address=registration.address,
                registration_date=now,
                password_hash=generate_password_hash(registration.password),
            )
            self._profiles.save(profile)
            self._open_session(profile.user_id, email, registration.full_name)
        return True

    def _open_session(self, user_id: str, email: str, full_name: str) -> UserSession:
        now = self._clock()
        session = UserSession(
            user_id=user_id,
            email=email,
            full_name=full_name,
            login_time=now,
            last_activity=now,
            is_authenticated=True,
        )
        self._slot.current = session
        self.session_changed.publish(session)
        self._persist()
        return session

    # endregion

    # region Activity
    def update_activity(self) -> None:
        with self._lock:
            session = self._slot.current
            if session is None:
                return
            session.touch(self._clock())
            self._persist()

    def is_session_valid(self) -> bool:
        session = self._slot.current
        return bool(
            session is not None
            and session.is_authenticated
            and not session.is_expired(self._clock(), self._timeout)
        )

    def restore_session(self) -> bool:
        """Adopt the persisted session if it exists and has not expired."""
        if self._writer is None:
            return False

        try:
            raw = self._writer.store.get(self._snapshot_key)
            if not raw:
                return False
            session = UserSession.from_dict(json.loads(raw))
            now = self._clock()
            expired = session.is_expired(now, self._timeout)
        except (PersistenceError, ValueError, KeyError, TypeError, AttributeError):
            logger.warning("Persisted session %r could not be read", self._snapshot_key, exc_info=True)
            return False

        if expired:
            logger.debug("Persisted session for %s has expired", session.email)
            return False

        with self._lock:
            session.touch(now)
            self._slot.current = session
            self.session_changed.publish(session)
            self._persist()
        return True

    # endregion

    # region Session data
    def get_session_data(
        self,
        key: str,
        default: Optional[T] = None,
        *,
        decode: Optional[Callable[[Any], T]] = None,
    ) -> Optional[T]:
        """Read a session value; ``decode`` turns the stored JSON form into the caller's type."""
        session = self._slot.current
        if session is None or key not in session.session_data:
            return default
        value = session.session_data[key]
        return decode(value) if decode else value

    def set_session_data(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value. Raises ValidationError otherwise."""
        with self._lock:
            session = self._slot.current
            if session is None:
                return
            session.session_data[key] = require_json_value(value, key)
            self._persist()

    def clear_session_data(self, key: str) -> None:
        with self._lock:
            session = self._slot.current
            if session is None:
                return
            session.session_data.pop(key, None)
            self._persist()

    # endregion

    # region Profiles
    def add_profile(self, profile: UserProfile) -> None:
        with self._lock:
            self._profiles.save(profile)

    def get_user_profile(self, user_id: str) -> Optional[UserProfile]:
        with self._lock:
            return self._profiles.get_by_id(user_id)

    def update_user_profile(self, profile: UserProfile) -> bool:
        with self._lock:
            existing = self._profiles.get_by_id(profile.user_id)
            if existing is None:
                return False

            try:
                email = require_email(profile.email)
                if normalize_email(existing.email) != normalize_email(email):
                    taken = self._profiles.get_by_email(email)
                    if taken is not None and taken.user_id != profile.user_id:
                        raise ValidationError(f"{email} is already used")
            except DomainError as e:
                logger.info("Profile update rejected: %s", e)
                return False

            self._profiles.delete_by_email(existing.email)
            profile = replace(profile, email=email)
            if profile.password_hash is None:
                profile = replace(profile, password_hash=existing.password_hash)
            self._profiles.save(profile)

            session = self._slot.current
            if session is not None and session.user_id == profile.user_id:
                session.email = profile.email
                session.full_name = profile.full_name
                self.session_changed.publish(session)
                self._persist()
        return True

    # endregion

    def _persist(self) -> None:
        session = self._slot.current
        if self._writer is None or session is None:
            return
        self._writer.save(self._snapshot_key, json.dumps(session.to_dict()))
