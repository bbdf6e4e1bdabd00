from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.event_attendance.event_attendance.attendance.model import AttendanceRecord, EventAttendanceInfo
from src.event_attendance.event_attendance.attendance.statistics import AttendanceStatisticsCalculator
from src.event_attendance.event_attendance.core.enums import AttendanceStatus

DAY_ONE = datetime(2025, 3, 10, 9, 0)
DAY_TWO = datetime(2025, 3, 11, 18, 30)


def _record(event_id, user_id, status, *, check_in=None):
    return AttendanceRecord(
        event_id=event_id,
        user_id=user_id,
        user_name=user_id.title(),
        user_email=f"{user_id}@x.com",
        status=status,
        registered_at=DAY_ONE - timedelta(days=7),
        check_in_time=check_in,
    )


@pytest.fixture
def records():
    return [
        _record("launch", "ana", AttendanceStatus.PRESENT, check_in=DAY_ONE),
        _record("launch", "ben", AttendanceStatus.CHECKED_OUT, check_in=DAY_ONE),
        _record("launch", "cai", AttendanceStatus.NO_SHOW),
        _record("launch", "dan", AttendanceStatus.CANCELLED),
        _record("meetup", "ana", AttendanceStatus.CHECKED_OUT, check_in=DAY_TWO),
        _record("meetup", "ben", AttendanceStatus.REGISTERED),
    ]


@pytest.fixture
def events():
    return {
        "launch": EventAttendanceInfo(
            event_id="launch", event_name="Product Launch", event_date=None, event_location="", max_capacity=50
        )
    }


def test_totals_and_rates(records, events):
    stats = AttendanceStatisticsCalculator().build(records, events)

    assert stats.total_events == 1
    assert stats.total_registrations == 5
    assert stats.total_attendees == 3
    assert stats.overall_attendance_rate == pytest.approx(60.0)


def test_status_histogram_keeps_first_seen_order(records, events):
    stats = AttendanceStatisticsCalculator().build(records, events)

    assert list(stats.attendance_by_status.items()) == [
        ("Present", 1),
        ("CheckedOut", 2),
        ("NoShow", 1),
        ("Cancelled", 1),
        ("Registered", 1),
    ]


def test_attendance_by_event_uses_event_name_when_known(records, events):
    stats = AttendanceStatisticsCalculator().build(records, events)

    assert stats.attendance_by_event == {
        "Product Launch": pytest.approx(50.0),
        "meetup": pytest.approx(50.0),
    }


def test_attendance_by_date_counts_check_in_days(records, events):
    stats = AttendanceStatisticsCalculator().build(records, events)

    assert stats.attendance_by_date == {DAY_ONE.date(): 2, DAY_TWO.date(): 1}


def test_top_attendees_ranked_with_rate(records, events):
    stats = AttendanceStatisticsCalculator().build(records, events)

    assert [(a.user_id, a.events_attended) for a in stats.top_attendees] == [("ana", 2), ("ben", 1)]
    assert stats.top_attendees[0].attendance_rate == pytest.approx(100.0)
    assert stats.top_attendees[1].attendance_rate == pytest.approx(50.0)


def test_top_attendees_truncated_and_ties_keep_input_order(events):
    records = [_record("launch", name, AttendanceStatus.PRESENT, check_in=DAY_ONE) for name in ["zoe", "amy", "kim"]]

    stats = AttendanceStatisticsCalculator(top_n=2).build(records, events)

    assert [a.user_id for a in stats.top_attendees] == ["zoe", "amy"]


def test_empty_input():
    stats = AttendanceStatisticsCalculator().build([], {})

    assert stats.total_registrations == 0
    assert stats.overall_attendance_rate == 0.0
    assert stats.attendance_by_status == {}
    assert stats.attendance_by_event == {}
    assert stats.top_attendees == []
