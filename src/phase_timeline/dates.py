from __future__ import annotations

import datetime as _dt
from typing import Any


def coerce_date(value: Any) -> _dt.date:
    """
    Normalise a date-like value to a calendar date.

    Accepts ``date``, ``datetime`` (time of day dropped) and ISO-8601 strings
    (``YYYY-MM-DD`` optionally followed by a time part). Raises ``ValueError``
    for anything else.
    """

    if isinstance(value, _dt.datetime):
        return value.date()
    if isinstance(value, _dt.date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return _dt.date.fromisoformat(text)
        except ValueError:
            return parse_iso_datetime(text).date()
    raise ValueError(f"expected a date or ISO-8601 string, got {type(value).__name__}")


def parse_iso_datetime(text: str) -> _dt.datetime:
    """ISO-8601 timestamp, also accepting a trailing ``Z`` for UTC."""
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return _dt.datetime.fromisoformat(text)


def days_between(start: _dt.date, end: _dt.date) -> int:
    """Signed whole-day difference ``end - start``."""
    return (end - start).days


def first_of_next_month(day: _dt.date) -> _dt.date:
    if day.month == 12:
        return _dt.date(day.year + 1, 1, 1)
    return _dt.date(day.year, day.month + 1, 1)
