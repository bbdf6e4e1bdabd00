"""Example: drive the engine through the service layer (no Flask).

Controllers are thin; the rules live in AttendanceService and SessionManager.
"""

from src.event_attendance.event_attendance.attendance.model import CheckInRequest
from src.event_attendance.event_attendance.container import build_container
from src.event_attendance.event_attendance.main import load_settings
from src.event_attendance.event_attendance.seed import seed_demo_profiles


def main():
    container = build_container(settings=load_settings({"STORE_BACKEND": "memory"}))
    seed_demo_profiles(container)

    container.session_manager.login("demo@example.com", "Demo123!")
    attendance = container.attendance_service
    attendance.attendance_changed.subscribe(lambda r: print(f"{r.user_email}: {r.status.value}"))

    attendance.add_event("event-100", "Python Meetup", max_capacity=20)
    attendance.register("event-100", "u1", "Ana Ruiz", "ana@example.com")
    attendance.check_in(CheckInRequest(event_id="event-100", user_email="ana@example.com", seat_number="B4"))

    print(attendance.get_event_info("event-100"))
    container.close()


if __name__ == "__main__":
    main()
