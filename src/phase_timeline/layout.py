from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

from .dates import coerce_date, days_between, first_of_next_month
from .models import MonthLabel, Phase, PhaseBar, TimeAxis, TimelineLayout

logger = logging.getLogger(__name__)

PHASE_PALETTE: tuple[str, ...] = (
    "#3b82f6",  # blue
    "#22c55e",  # green
    "#a855f7",  # purple
    "#f59e0b",  # amber
    "#ec4899",  # pink
    "#6366f1",  # indigo
    "#06b6d4",  # cyan
    "#f43f5e",  # rose
)

MONTH_LABEL_FORMAT = "%b %Y"


@dataclass(frozen=True)
class _DatedPhase:
    """A phase paired with its coerced dates and its index in the input."""

    index: int
    phase: Phase
    start: date
    end: date


def layout_timeline(
    phases: Sequence[Phase],
    palette: Sequence[str] = PHASE_PALETTE,
    month_format: str = MONTH_LABEL_FORMAT,
) -> TimelineLayout:
    """
    Lay out ``phases`` on a shared time axis.

    - Only phases with both dates take part; input order is preserved.
    - The axis runs from the earliest to the latest start or end date, inclusive.
    - Bars and month labels are expressed in percent of the axis length.
    - Colours cycle through ``palette`` by position among the dated phases.
    - A phase whose dates cannot be read is skipped; the rest still lay out.
    """

    if not palette:
        raise ValueError("palette must not be empty")

    dated = list(_dated_phases(phases))
    if not dated:
        return TimelineLayout()

    axis = _compute_axis(dated)
    bars = [
        _bar_for(item, position, axis, palette)
        for position, item in enumerate(dated)
    ]
    months = month_labels(axis, month_format)
    return TimelineLayout(axis=axis, bars=bars, months=months)


def month_labels(axis: TimeAxis, month_format: str = MONTH_LABEL_FORMAT) -> list[MonthLabel]:
    """
    Walk the calendar months touching ``axis`` and return one label per month.

    The first and last segments are clipped to the axis ends, so the labels
    partition the axis without gaps.
    """

    labels: list[MonthLabel] = []
    month_start = axis.min_date.replace(day=1)
    while month_start <= axis.max_date:
        next_month = first_of_next_month(month_start)
        seg_start = max(month_start, axis.min_date)
        seg_end = min(date.fromordinal(next_month.toordinal() - 1), axis.max_date)
        offset = days_between(axis.min_date, seg_start)
        span = days_between(seg_start, seg_end) + 1
        labels.append(
            MonthLabel(
                label=month_start.strftime(month_format),
                start=seg_start,
                end=seg_end,
                position_percent=_percent(offset, axis.total_days),
                width_percent=_percent(span, axis.total_days),
            )
        )
        month_start = next_month
    return labels


def _dated_phases(phases: Iterable[Phase]) -> Iterable[_DatedPhase]:
    for index, phase in enumerate(phases):
        if not phase.start_date or not phase.end_date:
            continue
        try:
            start = coerce_date(phase.start_date)
            end = coerce_date(phase.end_date)
        except ValueError as exc:
            logger.warning("Skipping phase %d (%r) in layout: %s", index, phase.name, exc)
            continue
        yield _DatedPhase(index=index, phase=phase, start=start, end=end)


def _compute_axis(dated: list[_DatedPhase]) -> TimeAxis:
    all_dates = [d for item in dated for d in (item.start, item.end)]
    min_date = min(all_dates)
    max_date = max(all_dates)
    return TimeAxis(min_date=min_date, max_date=max_date, total_days=days_between(min_date, max_date) + 1)


def _bar_for(item: _DatedPhase, position: int, axis: TimeAxis, palette: Sequence[str]) -> PhaseBar:
    start_offset = days_between(axis.min_date, item.start)
    # Inverted ranges collapse to a single day.
    duration_days = max(days_between(item.start, item.end) + 1, 1)
    return PhaseBar(
        phase_index=item.index,
        phase=item.phase,
        start_offset_days=start_offset,
        duration_days=duration_days,
        start_percent=_percent(start_offset, axis.total_days),
        width_percent=_percent(duration_days, axis.total_days),
        color=palette[position % len(palette)],
    )


def _percent(days: int, total_days: int) -> float:
    return 100.0 * days / total_days
