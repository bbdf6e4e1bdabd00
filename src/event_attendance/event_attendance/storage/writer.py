"""Background writer applying best-effort snapshots to a durable store."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from queue import Queue
from typing import Optional

from .store import DurableStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreWrite:
    """One queued store operation; ``value=None`` means remove."""

    key: str
    value: Optional[str]


class SnapshotWriter:
    """Single-writer queue in front of a :class:`DurableStore`.

    Each write is attempted once. Failures are logged and dropped so a broken
    store never changes the outcome of the business call that queued it. With
    ``background=False`` writes are applied inline (tests, scripts).
    """

    def __init__(self, store: DurableStore, *, background: bool = True):
        self._store = store
        self._background = background
        self._queue: "Queue[Optional[StoreWrite]]" = Queue()
        self._worker: Optional[threading.Thread] = None
        self._lock = threading.Lock()

        if background:
            self._worker = threading.Thread(target=self._process_writes, name="snapshot-writer", daemon=True)
            self._worker.start()

    @property
    def store(self) -> DurableStore:
        return self._store

    def save(self, key: str, value: str) -> None:
        self._submit(StoreWrite(key=key, value=value))

    def remove(self, key: str) -> None:
        self._submit(StoreWrite(key=key, value=None))

    def _submit(self, write: StoreWrite) -> None:
        if self._background and self._worker is not None and self._worker.is_alive():
            self._queue.put(write)
            return
        self._apply(write)

    def _apply(self, write: StoreWrite) -> None:
        with self._lock:
            try:
                if write.value is None:
                    self._store.remove(write.key)
                else:
                    self._store.set(write.key, write.value)
            except Exception:
                logger.exception("Snapshot write for %r failed; skipped", write.key)

    def _process_writes(self) -> None:
        """Background thread draining the write queue."""
        while True:
            write = self._queue.get()
            try:
                if write is None:  # Shutdown signal
                    break
                self._apply(write)
            finally:
                self._queue.task_done()

    def flush(self) -> None:
        """Block until every queued write has been attempted."""
        if self._background:
            self._queue.join()

    def close(self) -> None:
        if self._worker is not None and self._worker.is_alive():
            self._queue.put(None)
            self._worker.join(timeout=5)
        self._worker = None
