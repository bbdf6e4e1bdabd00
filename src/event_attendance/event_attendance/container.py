from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

from .attendance.service import AttendanceService
from .common.datetime_utils import Clock
from .core import constants
from .core.enums import StoreBackend
from .database.bootstrap import apply_schema
from .database.connection import DBConfig, DatabaseConnection
from .sessions.repository import InMemoryProfileRepository, SessionSlot
from .sessions.service import SessionManager
from .storage.mysql_store import MySQLKeyValueStore
from .storage.store import DurableStore, InMemoryStore
from .storage.writer import SnapshotWriter


@dataclass(frozen=True)
class Container:
    store: DurableStore
    writer: SnapshotWriter
    session_slot: SessionSlot

    attendance_service: AttendanceService
    session_manager: SessionManager

    def close(self) -> None:
        self.writer.close()


def build_store(settings: Any) -> DurableStore:
    backend = StoreBackend(str(getattr(settings, "STORE_BACKEND", StoreBackend.MEMORY.value)).lower())
    if backend == StoreBackend.MEMORY:
        return InMemoryStore()

    conn = DatabaseConnection.get_instance(DBConfig.from_dict(getattr(settings, "DB_CONFIG")))
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(conn)
    return MySQLKeyValueStore(conn)


def build_container(
    *,
    settings: Any,
    store: Optional[DurableStore] = None,
    clock: Optional[Clock] = None,
) -> Container:
    store = store if store is not None else build_store(settings)
    writer = SnapshotWriter(store, background=bool(getattr(settings, "PERSIST_IN_BACKGROUND", True)))
    session_slot = SessionSlot()

    attendance_service = AttendanceService(
        writer=writer,
        snapshot_key=getattr(settings, "ATTENDANCE_SNAPSHOT_KEY", constants.ATTENDANCE_SNAPSHOT_KEY),
        clock=clock,
    )
    session_manager = SessionManager(
        slot=session_slot,
        profiles=InMemoryProfileRepository(),
        writer=writer,
        snapshot_key=getattr(settings, "SESSION_SNAPSHOT_KEY", constants.SESSION_SNAPSHOT_KEY),
        clock=clock,
        timeout=timedelta(
            minutes=int(getattr(settings, "SESSION_TIMEOUT_MINUTES", constants.DEFAULT_SESSION_TIMEOUT_MINUTES))
        ),
        demo_passwords=getattr(settings, "DEMO_PASSWORDS", constants.DEFAULT_DEMO_PASSWORDS),
    )

    return Container(
        store=store,
        writer=writer,
        session_slot=session_slot,
        attendance_service=attendance_service,
        session_manager=session_manager,
    )
