from __future__ import annotations

import threading

from src.event_attendance.event_attendance.core.exceptions import PersistenceError
from src.event_attendance.event_attendance.storage.store import InMemoryStore
from src.event_attendance.event_attendance.storage.writer import SnapshotWriter


class FlakyStore(InMemoryStore):
    """Fails writes for the keys listed in ``broken``."""

    def __init__(self, broken):
        super().__init__()
        self.broken = set(broken)

    def set(self, key, value):
        if key in self.broken:
            raise PersistenceError(f"cannot write {key}")
        super().set(key, value)


class RecordingStore(InMemoryStore):
    def __init__(self):
        super().__init__()
        self.threads = []

    def set(self, key, value):
        self.threads.append(threading.current_thread().name)
        super().set(key, value)


def test_inline_writer_applies_immediately():
    store = InMemoryStore()
    writer = SnapshotWriter(store, background=False)

    writer.save("k", "v1")
    assert store.get("k") == "v1"

    writer.remove("k")
    assert store.get("k") is None


def test_background_writer_applies_in_order_on_its_own_thread():
    store = RecordingStore()
    writer = SnapshotWriter(store)

    for i in range(20):
        writer.save("k", f"v{i}")
    writer.flush()

    assert store.get("k") == "v19"
    assert set(store.threads) == {"snapshot-writer"}
    writer.close()


def test_failed_write_is_skipped_and_later_writes_continue():
    store = FlakyStore(broken={"bad"})
    writer = SnapshotWriter(store)

    writer.save("bad", "x")
    writer.save("good", "y")
    writer.flush()

    assert store.get("bad") is None
    assert store.get("good") == "y"
    writer.close()


def test_writes_after_close_are_applied_inline():
    store = InMemoryStore()
    writer = SnapshotWriter(store)
    writer.close()

    writer.save("k", "v")

    assert store.get("k") == "v"


def test_close_drains_pending_writes():
    store = InMemoryStore()
    writer = SnapshotWriter(store)
    for i in range(5):
        writer.save(f"k{i}", str(i))

    writer.close()

    assert sorted(store.keys()) == ["k0", "k1", "k2", "k3", "k4"]
