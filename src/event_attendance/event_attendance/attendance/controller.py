from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.http import fail, json_body, session_required
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .model import AttendanceSearchFilter, AttendanceStatistics, CheckInRequest, MutationResult


def _statistics_to_dict(stats: AttendanceStatistics) -> dict:
    return {
        "total_events": stats.total_events,
        "total_registrations": stats.total_registrations,
        "total_attendees": stats.total_attendees,
        "overall_attendance_rate": round(stats.overall_attendance_rate, 2),
        "attendance_by_status": stats.attendance_by_status,
        "attendance_by_event": {k: round(v, 2) for k, v in stats.attendance_by_event.items()},
        "attendance_by_date": {d.isoformat(): n for d, n in stats.attendance_by_date.items()},
        "top_attendees": [
            {
                "user_id": a.user_id,
                "user_name": a.user_name,
                "user_email": a.user_email,
                "events_attended": a.events_attended,
                "attendance_rate": round(a.attendance_rate, 2),
            }
            for a in stats.top_attendees
        ],
    }


def _parse_bool(value):
    if value is None or value == "":
        return None
    return str(value).lower() in {"1", "true", "yes", "on"}


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service
    login_required = session_required(container)

    def _mutation_response(result: MutationResult, message: str, status: int = 200):
        if not result:
            return fail(result.reason or "Operation rejected", 409)
        return jsonify({"success": True, "message": message, "record": result.record.to_dict()}), status

    @app.route("/api/events", methods=["GET"], endpoint="list_events")
    @login_required
    def list_events():
        return jsonify({"success": True, "events": [e.to_dict() for e in service.list_events()]})

    @app.route("/api/events", methods=["POST"], endpoint="add_event")
    @login_required
    def add_event():
        data = json_body()
        try:
            event_date = data.get("event_date")
            info = service.add_event(
                str(data.get("event_id") or ""),
                str(data.get("event_name") or ""),
                event_date=parse_iso_date(event_date) if event_date else None,
                event_location=str(data.get("event_location") or ""),
                max_capacity=int(data.get("max_capacity") or 0),
            )
        except (ValidationError, ValueError) as e:
            return fail(str(e), 400)
        return jsonify({"success": True, "event": info.to_dict()}), 201

    @app.route("/api/events/<event_id>", methods=["GET"], endpoint="event_attendance")
    @login_required
    def event_attendance(event_id: str):
        info = service.get_event_info(event_id)
        records = service.get_event_attendance(event_id)
        if info is None and not records:
            return fail("Event not found", 404)

        payload = info.to_dict() if info else {"event_id": event_id}
        if info:
            payload.update(
                attendance_rate=round(info.attendance_rate, 2),
                no_show_rate=round(info.no_show_rate, 2),
                available_spots=info.available_spots,
                is_full=info.is_full,
            )
        return jsonify({"success": True, "event": payload, "records": [r.to_dict() for r in records]})

    @app.route("/api/events/<event_id>/registrations", methods=["POST"], endpoint="register_attendee")
    @login_required
    def register_attendee(event_id: str):
        data = json_body()
        result = service.register(
            event_id,
            str(data.get("user_id") or ""),
            str(data.get("user_name") or ""),
            str(data.get("user_email") or ""),
        )
        return _mutation_response(result, "Registration created", 201)

    @app.route("/api/events/<event_id>/checkin", methods=["POST"], endpoint="check_in")
    @login_required
    def check_in(event_id: str):
        data = json_body()
        result = service.check_in(
            CheckInRequest(
                event_id=event_id,
                user_email=str(data.get("user_email") or ""),
                notes=data.get("notes"),
                is_vip=bool(_parse_bool(data.get("is_vip"))),
                seat_number=data.get("seat_number"),
            )
        )
        return _mutation_response(result, "Checked in")

    @app.route("/api/events/<event_id>/checkout", methods=["POST"], endpoint="check_out")
    @login_required
    def check_out(event_id: str):
        result = service.check_out(event_id, str(json_body().get("user_email") or ""))
        return _mutation_response(result, "Checked out")

    @app.route("/api/events/<event_id>/no-show", methods=["POST"], endpoint="mark_no_show")
    @login_required
    def mark_no_show(event_id: str):
        result = service.mark_no_show(event_id, str(json_body().get("user_email") or ""))
        return _mutation_response(result, "Marked as no-show")

    @app.route("/api/events/<event_id>/cancel", methods=["POST"], endpoint="cancel_registration")
    @login_required
    def cancel_registration(event_id: str):
        result = service.cancel_registration(event_id, str(json_body().get("user_email") or ""))
        return _mutation_response(result, "Registration cancelled")

    @app.route("/api/events/<event_id>/notes", methods=["PUT"], endpoint="update_notes")
    @login_required
    def update_notes(event_id: str):
        data = json_body()
        result = service.update_notes(event_id, str(data.get("user_email") or ""), data.get("notes"))
        return _mutation_response(result, "Notes updated")

    @app.route("/api/attendance/search", methods=["GET"], endpoint="search_attendance")
    @login_required
    def search_attendance():
        args = request.args
        try:
            status = args.get("status")
            start = args.get("from")
            end = args.get("to")
            search_filter = AttendanceSearchFilter(
                event_id=args.get("event_id") or None,
                user_email=args.get("user_email") or None,
                status=AttendanceStatus(status) if status else None,
                from_date=parse_iso_date(start) if start else None,
                to_date=parse_iso_date(end) if end else None,
                is_vip=_parse_bool(args.get("is_vip")),
                search_term=args.get("q") or None,
            )
        except ValueError as e:
            return fail(f"Invalid filter: {e}", 400)

        records = service.search(search_filter)
        return jsonify({"success": True, "records": [r.to_dict() for r in records]})

    @app.route("/api/attendance/statistics", methods=["GET"], endpoint="attendance_statistics")
    @login_required
    def attendance_statistics():
        return jsonify({"success": True, "statistics": _statistics_to_dict(service.statistics())})

    @app.route("/api/users/<user_email>/history", methods=["GET"], endpoint="user_history")
    @login_required
    def user_history(user_email: str):
        records = service.get_user_history(user_email)
        return jsonify({"success": True, "records": [r.to_dict() for r in records]})
