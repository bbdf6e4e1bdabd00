from __future__ import annotations

import json
import re
from typing import Any

from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_email(value: str, field_name: str = "Email") -> str:
    value = require_non_empty(value, field_name)
    if not _EMAIL_RE.match(value):
        raise ValidationError(f"{field_name} is not a valid email address")
    return value


def normalize_email(value: str) -> str:
    """Lookup form of an email: stripped and lower-cased."""
    return (value or "").strip().lower()


def require_json_value(value: Any, field_name: str) -> Any:
    """Return the JSON form of ``value`` (what a snapshot restore would give back)."""
    try:
        return json.loads(json.dumps(value))
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be JSON-serializable")
