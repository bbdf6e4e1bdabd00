from __future__ import annotations

from functools import wraps

from flask import jsonify, request

from ..container import Container


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def fail(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def session_required(container: Container):
    """Reject with 401 unless the current session is valid; refresh activity otherwise."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if not container.session_manager.is_session_valid():
                return fail("Please log in to continue", 401)
            container.session_manager.update_activity()
            return view(*args, **kwargs)

        return wrapper

    return decorator
