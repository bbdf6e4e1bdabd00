from __future__ import annotations

from datetime import date, datetime, time
from typing import Callable, Optional

Clock = Callable[[], datetime]


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse a naive local ISO datetime. Values carrying a UTC offset raise ValueError."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        raise ValueError(f"Expected a local timestamp without offset, got {value!r}")
    return parsed


def format_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max)


def as_datetime(value: date | datetime, *, upper: bool = False) -> datetime:
    """Widen a bare date to a datetime bound; an upper bound covers the whole day."""
    if isinstance(value, datetime):
        return value
    return end_of_day(value) if upper else datetime.combine(value, time.min)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()
