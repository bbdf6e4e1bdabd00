from __future__ import annotations

from typing import Optional

import mysql.connector

from ..core.exceptions import PersistenceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .store import DurableStore


class MySQLKeyValueStore(DurableStore):
    """Durable store backed by the ``kv_store`` table."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, key: str) -> Optional[str]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("SELECT store_value FROM kv_store WHERE store_key=%s", (key,))
                row = fetchone(cur)
        except mysql.connector.Error as e:
            raise PersistenceError(f"Could not read {key!r}: {e}") from e
        return row["store_value"] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO kv_store(store_key, store_value)
                    VALUES(%s,%s)
                    ON DUPLICATE KEY UPDATE store_value=VALUES(store_value)
                    """,
                    (key, value),
                )
        except mysql.connector.Error as e:
            raise PersistenceError(f"Could not write {key!r}: {e}") from e

    def remove(self, key: str) -> None:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("DELETE FROM kv_store WHERE store_key=%s", (key,))
        except mysql.connector.Error as e:
            raise PersistenceError(f"Could not remove {key!r}: {e}") from e
