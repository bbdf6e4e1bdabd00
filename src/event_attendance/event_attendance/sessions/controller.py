from __future__ import annotations

from dataclasses import replace

from flask import Flask, jsonify

from ..common.datetime_utils import format_iso, parse_iso_date
from ..common.http import fail, json_body, session_required
from ..core.exceptions import ValidationError
from ..container import Container
from .model import UserRegistration, UserSession


def _session_to_dict(session: UserSession, manager) -> dict:
    data = session.to_dict()
    data["session_duration_seconds"] = int(session.session_duration(manager.now()).total_seconds())
    data["expires_in_seconds"] = max(
        int((session.last_activity + manager.timeout - manager.now()).total_seconds()), 0
    )
    return data


def register(app: Flask, container: Container) -> None:
    manager = container.session_manager
    login_required = session_required(container)

    @app.route("/api/session/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        if not manager.login(str(data.get("email") or ""), str(data.get("password") or "")):
            return fail("Invalid email or password", 401)
        return jsonify({"success": True, "session": _session_to_dict(manager.current_session, manager)})

    @app.route("/api/session/logout", methods=["POST"], endpoint="logout")
    def logout():
        manager.logout()
        return jsonify({"success": True, "message": "Logged out"})

    @app.route("/api/session/register", methods=["POST"], endpoint="register_user")
    def register_user():
        data = json_body()
        try:
            birth = data.get("date_of_birth")
            registration = UserRegistration(
                first_name=str(data.get("first_name") or ""),
                last_name=str(data.get("last_name") or ""),
                email=str(data.get("email") or ""),
                password=str(data.get("password") or ""),
                phone=str(data.get("phone") or ""),
                date_of_birth=parse_iso_date(birth) if birth else None,
                address=str(data.get("address") or ""),
            )
        except ValueError as e:
            return fail(f"Invalid date of birth: {e}", 400)

        if not manager.register_user(registration):
            return fail("Registration failed: invalid data or email already in use", 409)
        return jsonify({"success": True, "session": _session_to_dict(manager.current_session, manager)}), 201

    @app.route("/api/session", methods=["GET"], endpoint="current_session")
    def current_session():
        session = manager.current_session
        if session is None:
            return jsonify({"success": True, "session": None, "valid": False})
        return jsonify(
            {
                "success": True,
                "session": _session_to_dict(session, manager),
                "valid": manager.is_session_valid(),
            }
        )

    @app.route("/api/session/activity", methods=["POST"], endpoint="session_activity")
    @login_required
    def session_activity():
        return jsonify({"success": True, "last_activity": format_iso(manager.current_session.last_activity)})

    @app.route("/api/session/data/<key>", methods=["GET"], endpoint="get_session_data")
    @login_required
    def get_session_data(key: str):
        return jsonify({"success": True, "key": key, "value": manager.get_session_data(key)})

    @app.route("/api/session/data/<key>", methods=["PUT"], endpoint="set_session_data")
    @login_required
    def set_session_data(key: str):
        data = json_body()
        if "value" not in data:
            return fail("Missing 'value'", 400)
        try:
            manager.set_session_data(key, data["value"])
        except ValidationError as e:
            return fail(str(e), 400)
        return jsonify({"success": True, "key": key, "value": manager.get_session_data(key)})

    @app.route("/api/session/data/<key>", methods=["DELETE"], endpoint="clear_session_data")
    @login_required
    def clear_session_data(key: str):
        manager.clear_session_data(key)
        return jsonify({"success": True, "message": f"Removed {key}"})

    @app.route("/api/profiles/<user_id>", methods=["GET"], endpoint="get_profile")
    @login_required
    def get_profile(user_id: str):
        profile = manager.get_user_profile(user_id)
        if profile is None:
            return fail("Profile not found", 404)
        return jsonify({"success": True, "profile": profile.to_public_dict()})

    @app.route("/api/profiles/<user_id>", methods=["PUT"], endpoint="update_profile")
    @login_required
    def update_profile(user_id: str):
        profile = manager.get_user_profile(user_id)
        if profile is None:
            return fail("Profile not found", 404)

        data = json_body()
        changes = {
            name: data[name]
            for name in (
                "first_name",
                "last_name",
                "email",
                "phone",
                "address",
                "preferred_language",
                "email_notifications",
                "sms_notifications",
            )
            if name in data
        }
        try:
            if data.get("date_of_birth"):
                changes["date_of_birth"] = parse_iso_date(data["date_of_birth"])
        except ValueError as e:
            return fail(f"Invalid date of birth: {e}", 400)

        if not manager.update_user_profile(replace(profile, **changes)):
            return fail("Profile update rejected: invalid email or email already in use", 409)
        return jsonify({"success": True, "profile": manager.get_user_profile(user_id).to_public_dict()})
