from __future__ import annotations

import datetime as _dt
from typing import Any, Mapping

from .dates import coerce_date, days_between

DATE_FIELDS = ("start_date", "end_date")


def compute_duration(start: _dt.date | _dt.datetime | str, end: _dt.date | _dt.datetime | str) -> str:
    """
    Human-readable length of the range ``start`` to ``end``.

    Ranges that are empty or inverted read ``"0 days"``. Shorter than a week
    reads in days, shorter than 30 days in weeks and days, anything longer in
    30-day months and days.
    """

    start_day = coerce_date(start)
    end_day = coerce_date(end)
    if end_day <= start_day:
        return "0 days"

    days = days_between(start_day, end_day)
    if days < 7:
        return _count(days, "day")
    if days < 30:
        return _with_remainder(days // 7, "week", days % 7)
    return _with_remainder(days // 30, "month", days % 30)


def sync_duration(fields: Mapping[str, Any], changed: str) -> dict[str, Any]:
    """
    Return a copy of draft ``fields`` with the duration label kept in step.

    The label is overwritten only when ``changed`` is one of the date fields
    and both dates are filled in; otherwise a manually typed duration stays.
    """

    updated = dict(fields)
    if changed in DATE_FIELDS and all(updated.get(name) for name in DATE_FIELDS):
        updated["duration"] = compute_duration(updated["start_date"], updated["end_date"])
    return updated


def _count(value: int, unit: str) -> str:
    return f"{value} {unit}{'' if value == 1 else 's'}"


def _with_remainder(value: int, unit: str, remaining_days: int) -> str:
    if remaining_days == 0:
        return _count(value, unit)
    return f"{_count(value, unit)} {_count(remaining_days, 'day')}"
