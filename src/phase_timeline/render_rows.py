from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from typing import List

from .dates import coerce_date
from .models import Attachment, TimelineLayout


@dataclass
class BarRow:
    """
    One chart row as the renderer draws it.

    Geometry is in percent of the axis; ``width`` already carries the minimum
    visible width, ``raw_width`` the computed one.
    """

    order: int
    phase_index: int
    name: str
    duration_label: str
    color: str
    left: float
    width: float
    raw_width: float
    tooltip: list[str] = field(default_factory=list)


def to_render_rows(layout: TimelineLayout, min_width_percent: float = 1.0) -> list[BarRow]:
    """
    Convert a timeline layout into renderable rows, one per bar, in layout order.

    Widths below ``min_width_percent`` are raised to it so degenerate bars stay
    visible; a widened bar is shifted left if it would run past the axis end.
    """

    rows: List[BarRow] = []
    for order, bar in enumerate(layout.bars):
        width = max(bar.width_percent, min_width_percent)
        left = min(bar.start_percent, max(100.0 - width, 0.0))
        phase = bar.phase
        rows.append(
            BarRow(
                order=order,
                phase_index=bar.phase_index,
                name=phase.name,
                duration_label=phase.duration,
                color=bar.color,
                left=left,
                width=width,
                raw_width=bar.width_percent,
                tooltip=[
                    phase.name,
                    f"Start: {format_date(phase.start_date)}",
                    f"End: {format_date(phase.end_date)}",
                    f"Duration: {bar.duration_days} days",
                    *(attachment_label(att) for att in phase.attachments),
                ],
            )
        )
    return rows


def attachment_label(attachment: Attachment) -> str:
    return f"Attachment: {attachment.name} ({format_file_size(attachment.size)})"


def format_date(value) -> str:
    """Short display form, e.g. ``Jan 05, 2024``."""
    if value is None:
        return ""
    return coerce_date(value).strftime("%b %d, %Y")


def format_axis_range(start: _dt.date, end: _dt.date) -> str:
    return f"{format_date(start)} - {format_date(end)}"


def format_file_size(size: int) -> str:
    """Human-readable byte count: ``0 Bytes``, ``512 Bytes``, ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    exponent = 0
    while size >= 1024 ** (exponent + 1) and exponent < len(units) - 1:
        exponent += 1
    text = f"{size / 1024**exponent:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[exponent]}"
