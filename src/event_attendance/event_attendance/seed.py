"""Demo events and profiles for local runs (SEED_DEMO_DATA)."""

from __future__ import annotations

from datetime import date, timedelta

from .attendance.model import CheckInRequest
from .container import Container
from .sessions.model import UserProfile


def seed_demo_events(container: Container, *, today: date) -> None:
    attendance = container.attendance_service

    attendance.add_event(
        "event-001",
        "Conferencia de Tecnología 2025",
        event_date=today + timedelta(days=7),
        event_location="Madrid, España",
        max_capacity=100,
    )
    attendance.add_event(
        "event-002",
        "Workshop de Blazor",
        event_date=today + timedelta(days=14),
        event_location="Barcelona, España",
        max_capacity=50,
    )
    attendance.add_event(
        "event-003",
        "Meetup de Desarrolladores",
        event_date=today - timedelta(days=2),
        event_location="Valencia, España",
        max_capacity=75,
    )

    attendance.register("event-001", "user-001", "Juan Pérez", "juan@example.com")
    attendance.register("event-001", "user-002", "María García", "maria@example.com")
    attendance.check_in(CheckInRequest(event_id="event-001", user_email="maria@example.com", is_vip=True))
    attendance.register("event-003", "user-001", "Juan Pérez", "juan@example.com")
    attendance.check_in(CheckInRequest(event_id="event-003", user_email="juan@example.com"))
    attendance.check_out("event-003", "juan@example.com")
    attendance.register("event-003", "user-003", "Carlos López", "carlos@example.com")
    attendance.mark_no_show("event-003", "carlos@example.com")


def seed_demo_profiles(container: Container) -> None:
    # Demo profiles carry no password hash; they accept DEMO_PASSWORDS.
    sessions = container.session_manager

    sessions.add_profile(
        UserProfile(
            user_id="demo-user-1",
            first_name="Juan",
            last_name="Pérez",
            email="demo@example.com",
            phone="+34 123 456 789",
            date_of_birth=date(1990, 5, 15),
            address="Calle Mayor 123, Madrid",
        )
    )
    sessions.add_profile(
        UserProfile(
            user_id="admin-user-1",
            first_name="María",
            last_name="García",
            email="admin@eventease.com",
            phone="+34 987 654 321",
            date_of_birth=date(1985, 8, 22),
            address="Avenida Libertad 456, Barcelona",
        )
    )
