from __future__ import annotations

from importlib import metadata
from pathlib import Path

import matplotlib

matplotlib.use("Agg")  # ensure headless, deterministic output
import matplotlib.pyplot as plt
from matplotlib.patches import FancyBboxPatch

from .models import TimelineLayout
from .render_rows import BarRow, format_axis_range, to_render_rows

FONT_SCALE = 1.0
TITLE_FONT = 14 * FONT_SCALE
LABEL_FONT = 10 * FONT_SCALE
SUBLABEL_FONT = 8 * FONT_SCALE
MONTH_FONT = 8 * FONT_SCALE
FOOTER_FONT = 8 * FONT_SCALE
ROW_HEIGHT = 0.6
MARKER_COLOR = "#9ca3af"
GRID_COLOR = "#e5e7eb"
PLACEHOLDER_COLOR = "#6b7280"
TOP_MARGIN_FRAC = 0.82
TITLE_Y = 0.985


def render_gantt(
    layout: TimelineLayout,
    out_path: str,
    title: str = "",
    min_width_percent: float = 1.0,
) -> None:
    """
    Render a timeline layout as a static SVG Gantt chart at `out_path`.

    - The x axis runs 0..100 percent of the layout's axis; months form the header.
    - One row per bar, labelled with the phase name and its duration label.
    - An empty layout produces a placeholder chart asking for phase dates.
    """

    if layout.is_empty:
        _render_placeholder(out_path, title)
        return

    rows = to_render_rows(layout, min_width_percent=min_width_percent)
    fig_height = max(3.0, ROW_HEIGHT * 1.6 * len(rows) + 2.5)
    fig = plt.figure(figsize=(14.0, fig_height))
    gs = fig.add_gridspec(1, 2, width_ratios=[1.2, 4.0], wspace=0.02, left=0.04, right=0.98, top=TOP_MARGIN_FRAC, bottom=0.12)
    label_ax = fig.add_subplot(gs[0, 0])
    ax = fig.add_subplot(gs[0, 1], sharey=label_ax)

    ax.set_xlim(0, 100)
    ax.set_ylim(-0.75, len(rows) - 0.25)
    ax.invert_yaxis()
    ax.set_yticks([])
    ax.set_xticks([])
    for spine in ax.spines.values():
        spine.set_color(GRID_COLOR)

    label_ax.set_xlim(0, 1)
    label_ax.axis("off")

    _draw_months(ax, layout)
    for idx, row in enumerate(rows):
        _draw_row(ax, label_ax, idx, row)

    axis = layout.axis
    assert axis is not None
    fig.suptitle(title, x=0.5, fontsize=TITLE_FONT, y=TITLE_Y)
    fig.text(
        0.98,
        0.93,
        f"{format_axis_range(axis.min_date, axis.max_date)}    {axis.total_days} days",
        ha="right",
        va="bottom",
        fontsize=LABEL_FONT,
    )
    fig.text(
        0.04,
        0.02,
        f"Total phases: {layout.phase_count}    Project duration: {layout.total_days} days",
        ha="left",
        va="bottom",
        fontsize=FOOTER_FONT,
    )
    fig.text(0.98, 0.02, f"phase-timeline v{_tool_version()}", ha="right", va="bottom", fontsize=FOOTER_FONT, alpha=0.8)

    _save(fig, out_path)


def _draw_months(ax: plt.Axes, layout: TimelineLayout) -> None:
    for month in layout.months:
        right = month.position_percent + month.width_percent
        ax.axvline(right, color=GRID_COLOR, linewidth=0.8, zorder=0)
        ax.text(
            month.position_percent + month.width_percent / 2,
            1.02,
            month.label,
            ha="center",
            va="bottom",
            fontsize=MONTH_FONT,
            transform=ax.get_xaxis_transform(),
            clip_on=False,
        )


def _draw_row(ax: plt.Axes, label_ax: plt.Axes, y: int, row: BarRow) -> None:
    label_ax.plot([0.04], [y - 0.08], marker="o", markersize=6, color=row.color)
    label_ax.text(0.1, y - 0.08, row.name, ha="left", va="center", fontsize=LABEL_FONT, fontweight="bold")
    if row.duration_label:
        label_ax.text(0.1, y + 0.22, row.duration_label, ha="left", va="center", fontsize=SUBLABEL_FONT, color=PLACEHOLDER_COLOR)

    bar = FancyBboxPatch(
        (row.left, y - ROW_HEIGHT / 2),
        row.width,
        ROW_HEIGHT,
        boxstyle="round,pad=0,rounding_size=0.15",
        facecolor=row.color,
        edgecolor="none",
        alpha=0.85,
        zorder=2,
    )
    ax.add_patch(bar)
    ax.text(
        row.left + row.width / 2,
        y,
        row.name,
        ha="center",
        va="center",
        fontsize=SUBLABEL_FONT,
        color="white",
        clip_on=True,
        zorder=3,
    )
    # Start and end markers.
    for x in (row.left, row.left + row.width):
        ax.plot([x, x], [y - ROW_HEIGHT / 1.6, y + ROW_HEIGHT / 1.6], color=MARKER_COLOR, linewidth=1.5, zorder=1)


def _render_placeholder(out_path: str, title: str) -> None:
    fig = plt.figure(figsize=(8.0, 3.0))
    ax = fig.add_subplot(1, 1, 1)
    ax.axis("off")
    if title:
        fig.suptitle(title, fontsize=TITLE_FONT, y=TITLE_Y)
    ax.text(0.5, 0.55, "No phases with start and end dates", ha="center", va="center", fontsize=LABEL_FONT, color=PLACEHOLDER_COLOR)
    ax.text(0.5, 0.4, "Add dates to phases to see the timeline", ha="center", va="center", fontsize=SUBLABEL_FONT, color=PLACEHOLDER_COLOR)
    _save(fig, out_path)


def _save(fig: plt.Figure, out_path: str) -> None:
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, format="svg", bbox_inches="tight")
    plt.close(fig)


def _tool_version() -> str:
    try:
        return metadata.version("phase-timeline")
    except metadata.PackageNotFoundError:
        return "0.0.0"
