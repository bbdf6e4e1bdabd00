from __future__ import annotations

from datetime import timedelta

import pytest

from src.event_attendance.event_attendance.attendance.model import AttendanceSearchFilter, CheckInRequest
from src.event_attendance.event_attendance.attendance.service import AttendanceService
from src.event_attendance.event_attendance.core.enums import AttendanceStatus
from src.event_attendance.event_attendance.core.exceptions import PersistenceError, ValidationError
from src.event_attendance.event_attendance.storage.store import InMemoryStore
from src.event_attendance.event_attendance.storage.writer import SnapshotWriter


class FailingStore:
    def __init__(self):
        self.attempts = 0

    def get(self, key):
        raise PersistenceError("store offline")

    def set(self, key, value):
        self.attempts += 1
        raise PersistenceError("store offline")

    def remove(self, key):
        self.attempts += 1
        raise PersistenceError("store offline")


class LoggingStore(InMemoryStore):
    def __init__(self, log: list):
        super().__init__()
        self._log = log

    def set(self, key, value):
        self._log.append(("persisted", key))
        super().set(key, value)


def _service(clock, store=None) -> AttendanceService:
    writer = SnapshotWriter(store if store is not None else InMemoryStore(), background=False)
    return AttendanceService(writer=writer, clock=clock)


def _assert_counters_match(service: AttendanceService, event_id: str) -> None:
    info = service.get_event_info(event_id)
    statuses = [r.status for r in service.get_event_attendance(event_id)]
    assert info.total_registered == sum(1 for s in statuses if s != AttendanceStatus.CANCELLED)
    assert info.total_present == statuses.count(AttendanceStatus.PRESENT)
    assert info.total_no_show == statuses.count(AttendanceStatus.NO_SHOW)
    assert info.total_checked_out == statuses.count(AttendanceStatus.CHECKED_OUT)


def test_register_check_in_check_out_flow(clock):
    service = _service(clock)
    service.add_event("event-001", "Launch", max_capacity=10)

    first = service.register("event-001", "u1", "User One", "u1@x.com")
    assert first
    assert first.record.status == AttendanceStatus.REGISTERED
    assert service.get_event_info("event-001").total_registered == 1

    second = service.register("event-001", "u1", "User One", "u1@x.com")
    assert not second
    assert "already registered" in second.reason
    assert service.get_event_info("event-001").total_registered == 1

    checked_in = service.check_in(CheckInRequest(event_id="event-001", user_email="u1@x.com"))
    assert checked_in.record.status == AttendanceStatus.PRESENT
    assert service.get_event_info("event-001").total_present == 1

    clock.advance(minutes=95)
    checked_out = service.check_out("event-001", "u1@x.com")
    assert checked_out.record.status == AttendanceStatus.CHECKED_OUT
    assert checked_out.record.attendance_duration == timedelta(minutes=95)
    info = service.get_event_info("event-001")
    assert (info.total_present, info.total_checked_out) == (0, 1)


def test_duplicate_registration_is_case_insensitive_and_leaves_state_unchanged(clock):
    service = _service(clock)
    service.add_event("event-001", "Launch", max_capacity=10)
    service.register("event-001", "u1", "User One", "u1@x.com")
    before = service.get_event_attendance("event-001")

    result = service.register("event-001", "u1", "User One", "U1@X.com")

    assert not result
    assert service.get_event_attendance("event-001") == before


def test_capacity_is_enforced(clock):
    service = _service(clock)
    service.add_event("small", "Small room", max_capacity=2)

    assert service.register("small", "u1", "One", "one@x.com")
    assert service.register("small", "u2", "Two", "two@x.com")
    third = service.register("small", "u3", "Three", "three@x.com")

    assert not third
    assert "full" in third.reason
    assert service.get_event_info("small").is_full
    assert service.get_event_info("small").available_spots == 0


def test_cancelled_registration_frees_a_spot_but_blocks_reregistration(clock):
    service = _service(clock)
    service.add_event("small", "Small room", max_capacity=1)
    service.register("small", "u1", "One", "one@x.com")

    assert service.cancel_registration("small", "one@x.com")
    assert service.get_event_info("small").total_registered == 0
    assert not service.register("small", "u1", "One", "one@x.com")
    assert service.register("small", "u2", "Two", "two@x.com")


def test_events_without_metadata_accept_registrations(clock):
    service = _service(clock)

    assert service.register("pop-up", "u1", "One", "one@x.com")
    assert service.get_event_info("pop-up") is None
    assert len(service.get_event_attendance("pop-up")) == 1


@pytest.mark.parametrize("status_setter", ["register_only", "mark_no_show", "cancel_registration", "checked_out"])
def test_check_out_requires_present(clock, status_setter):
    service = _service(clock)
    service.add_event("event-001", "Launch", max_capacity=10)
    service.register("event-001", "u1", "User One", "u1@x.com")
    if status_setter == "checked_out":
        service.check_in(CheckInRequest(event_id="event-001", user_email="u1@x.com"))
        clock.advance(minutes=10)
        service.check_out("event-001", "u1@x.com")
        clock.advance(minutes=10)
    elif status_setter != "register_only":
        getattr(service, status_setter)("event-001", "u1@x.com")
    before = service.get_record("event-001", "u1@x.com")

    result = service.check_out("event-001", "u1@x.com")

    assert not result
    after = service.get_record("event-001", "u1@x.com")
    assert after == before
    assert after.check_out_time == before.check_out_time
    assert after.attendance_duration == before.attendance_duration


def test_double_check_in_is_rejected(clock):
    service = _service(clock)
    service.register("event-001", "u1", "User One", "u1@x.com")
    service.check_in(CheckInRequest(event_id="event-001", user_email="u1@x.com"))

    assert not service.check_in(CheckInRequest(event_id="event-001", user_email="u1@x.com"))


def test_check_in_reopens_a_checked_out_record(clock):
    service = _service(clock)
    service.register("event-001", "u1", "User One", "u1@x.com")
    service.check_in(CheckInRequest(event_id="event-001", user_email="u1@x.com"))
    clock.advance(minutes=30)
    service.check_out("event-001", "u1@x.com")
    clock.advance(minutes=5)

    result = service.check_in(
        CheckInRequest(event_id="event-001", user_email="u1@x.com", is_vip=True, seat_number="A12")
    )

    assert result.record.status == AttendanceStatus.PRESENT
    assert result.record.check_out_time is None
    assert result.record.attendance_duration is None
    assert result.record.is_vip
    assert result.record.seat_number == "A12"


def test_mutations_on_missing_records_fail(clock):
    service = _service(clock)

    assert not service.check_in(CheckInRequest(event_id="nope", user_email="u1@x.com"))
    assert not service.check_out("nope", "u1@x.com")
    assert not service.mark_no_show("nope", "u1@x.com")
    assert not service.cancel_registration("nope", "u1@x.com")
    assert not service.update_notes("nope", "u1@x.com", "late")
    assert service.get_record("nope", "u1@x.com") is None


def test_register_rejects_invalid_email(clock):
    service = _service(clock)

    result = service.register("event-001", "u1", "User One", "not-an-email")

    assert not result
    assert service.get_event_attendance("event-001") == []


def test_counters_follow_every_mutation(clock):
    service = _service(clock)
    service.add_event("event-001", "Launch", max_capacity=10)
    emails = [f"user{i}@x.com" for i in range(5)]
    for i, email in enumerate(emails):
        service.register("event-001", f"u{i}", f"User {i}", email)
        _assert_counters_match(service, "event-001")

    service.check_in(CheckInRequest(event_id="event-001", user_email=emails[0]))
    service.check_in(CheckInRequest(event_id="event-001", user_email=emails[1]))
    service.check_out("event-001", emails[1])
    service.mark_no_show("event-001", emails[2])
    service.cancel_registration("event-001", emails[3])
    _assert_counters_match(service, "event-001")

    info = service.get_event_info("event-001")
    assert (info.total_registered, info.total_present, info.total_no_show, info.total_checked_out) == (4, 1, 1, 1)
    assert info.attendance_rate == pytest.approx(25.0)
    assert info.no_show_rate == pytest.approx(25.0)


def test_add_event_recomputes_counters_for_existing_records(clock):
    service = _service(clock)
    service.register("event-001", "u1", "User One", "u1@x.com")

    info = service.add_event("event-001", "Launch", max_capacity=5)

    assert info.total_registered == 1
    assert info.available_spots == 4


@pytest.mark.parametrize("event_id,capacity", [("", 10), ("event-001", 0)])
def test_add_event_rejects_invalid_input(clock, event_id, capacity):
    service = _service(clock)

    with pytest.raises(ValidationError):
        service.add_event(event_id, "Launch", max_capacity=capacity)


def test_search_by_status_returns_present_records_in_registration_order(clock):
    service = _service(clock)
    for name in ["ana", "ben", "cai", "dan"]:
        service.register("event-001", name, name.title(), f"{name}@x.com")
        clock.advance(minutes=1)
    service.check_in(CheckInRequest(event_id="event-001", user_email="dan@x.com"))
    service.check_in(CheckInRequest(event_id="event-001", user_email="ben@x.com"))
    service.mark_no_show("event-001", "cai@x.com")

    found = service.search(AttendanceSearchFilter(status=AttendanceStatus.PRESENT))

    assert [r.user_email for r in found] == ["ben@x.com", "dan@x.com"]


def test_search_combines_filters(clock, fixed_now):
    service = _service(clock)
    service.register("event-001", "u1", "Alice Smith", "alice@x.com")
    service.register("event-002", "u1", "Alice Smith", "alice@x.com")
    clock.advance(days=2)
    service.register("event-001", "u2", "Bob Jones", "bob@corp.com")
    service.check_in(CheckInRequest(event_id="event-001", user_email="bob@corp.com", is_vip=True))

    assert [r.user_email for r in service.search(AttendanceSearchFilter(event_id="event-001"))] == [
        "alice@x.com",
        "bob@corp.com",
    ]
    assert [r.event_id for r in service.search(AttendanceSearchFilter(user_email="ALICE"))] == [
        "event-001",
        "event-002",
    ]
    assert [r.user_name for r in service.search(AttendanceSearchFilter(search_term="jones"))] == ["Bob Jones"]
    assert [r.user_email for r in service.search(AttendanceSearchFilter(is_vip=True))] == ["bob@corp.com"]

    first_day = fixed_now.date()
    assert len(service.search(AttendanceSearchFilter(from_date=first_day, to_date=first_day))) == 2
    assert len(service.search(AttendanceSearchFilter(from_date=first_day + timedelta(days=1)))) == 1


def test_user_history_is_newest_first(clock):
    service = _service(clock)
    service.register("event-001", "u1", "User One", "u1@x.com")
    clock.advance(days=1)
    service.register("event-002", "u1", "User One", "u1@x.com")
    service.register("event-002", "u2", "User Two", "u2@x.com")

    history = service.get_user_history("U1@x.com")

    assert [r.event_id for r in history] == ["event-002", "event-001"]


def test_notes_and_custom_fields(clock):
    service = _service(clock)
    service.register("event-001", "u1", "User One", "u1@x.com")

    assert service.update_notes("event-001", "u1@x.com", "Needs wheelchair access")
    assert service.set_custom_field("event-001", "u1@x.com", "diet", {"vegan": True, "allergies": ["nuts"]})
    assert not service.set_custom_field("event-001", "u1@x.com", "badge", object())

    record = service.get_record("event-001", "u1@x.com")
    assert record.notes == "Needs wheelchair access"
    assert record.custom_fields == {"diet": {"vegan": True, "allergies": ["nuts"]}}


def test_notification_precedes_persistence(clock):
    log = []
    service = _service(clock, store=LoggingStore(log))
    service.attendance_changed.subscribe(lambda record: log.append(("notified", record.status)))

    service.register("event-001", "u1", "User One", "u1@x.com")

    assert log == [("notified", AttendanceStatus.REGISTERED), ("persisted", "attendanceData")]


def test_failing_subscriber_does_not_change_the_result(clock):
    service = _service(clock)
    received = []
    service.attendance_changed.subscribe(lambda record: 1 / 0)
    service.attendance_changed.subscribe(received.append)

    result = service.register("event-001", "u1", "User One", "u1@x.com")

    assert result
    assert received == [result.record]


def test_persistence_failure_does_not_change_the_result(clock):
    store = FailingStore()
    service = _service(clock, store=store)

    result = service.register("event-001", "u1", "User One", "u1@x.com")

    assert result
    assert store.attempts == 1
    assert service.get_record("event-001", "u1@x.com") == result.record
    assert service.load_snapshot() is False


def test_rejected_mutations_are_not_persisted_or_published(clock):
    log = []
    service = _service(clock, store=LoggingStore(log))
    service.register("event-001", "u1", "User One", "u1@x.com")
    log.clear()
    service.attendance_changed.subscribe(lambda record: log.append(("notified", record.key)))

    service.register("event-001", "u1", "User One", "u1@x.com")
    service.check_out("event-001", "u1@x.com")

    assert log == []
