from __future__ import annotations

import argparse
import logging
import sys
import webbrowser
from pathlib import Path

import yaml

from .config import get_config
from .duration import compute_duration
from .layout import layout_timeline
from .models import TimelineLayout
from .parse_phases import ProjectValidationError
from .render_gantt import render_gantt
from .render_rows import attachment_label, format_axis_range
from .store import PhaseStore, ProjectNotFoundError, YamlFileBackend, create_project

logger = logging.getLogger(__name__)


def _parse_date(value: str):
    import datetime as dt

    try:
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD") from exc


def _build_parser(config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="phase-timeline",
        description="Project phase timeline tools",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render a project's phases as an SVG Gantt chart")
    render.add_argument("data", nargs="?", default=config.DATA_FILE, help="Path to the YAML data file")
    render.add_argument("--project", required=True, help="Project id")
    render.add_argument("--out", default=config.OUTPUT_PATH, help="Output SVG path")
    render.add_argument("--title", help="Chart title; defaults to the project name")
    render.add_argument(
        "--view",
        dest="view",
        action="store_true",
        default=config.OPEN_AFTER_RENDER,
        help="Best-effort open the output file after rendering",
    )
    render.add_argument(
        "--no-view",
        dest="view",
        action="store_false",
        help="Do not open the output file after rendering",
    )

    layout = sub.add_parser("layout", help="Print the computed timeline layout")
    layout.add_argument("data", nargs="?", default=config.DATA_FILE, help="Path to the YAML data file")
    layout.add_argument("--project", required=True, help="Project id")

    duration = sub.add_parser("duration", help="Print the duration label between two dates")
    duration.add_argument("start", type=_parse_date, help="Start date (YYYY-MM-DD)")
    duration.add_argument("end", type=_parse_date, help="End date (YYYY-MM-DD)")

    init = sub.add_parser("init", help="Create a project with the default phases")
    init.add_argument("data", help="Path to the YAML data file")
    init.add_argument("name", help="Project name")
    init.add_argument("--id", dest="project_id", help="Project id; derived from the name when omitted")
    return parser


def _load_store(data: str, project_id: str) -> PhaseStore:
    store = PhaseStore(YamlFileBackend(data), project_id)
    store.refresh()
    for bad in store.malformed:
        print(f"Warning: skipped {bad}", file=sys.stderr)
    return store


def _format_layout(layout: TimelineLayout) -> str:
    if layout.is_empty:
        return "No phases with start and end dates."
    axis = layout.axis
    assert axis is not None
    lines = [f"Axis: {format_axis_range(axis.min_date, axis.max_date)} ({axis.total_days} days)"]
    for bar in layout.bars:
        lines.append(
            f"  {bar.phase.name}: start {bar.start_percent:.2f}% width {bar.width_percent:.2f}% "
            f"({bar.duration_days} days, {bar.color})"
        )
        lines.extend(f"    {attachment_label(att)}" for att in bar.phase.attachments)
    lines.append("Months:")
    for month in layout.months:
        lines.append(f"  {month.label}: at {month.position_percent:.2f}% width {month.width_percent:.2f}%")
    lines.append(f"Total phases: {layout.phase_count}")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    config = get_config()
    parser = _build_parser(config)
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, str(args.log_level).upper(), logging.WARNING))

    if args.command == "duration":
        print(compute_duration(args.start, args.end))
        return 0

    if args.command == "init":
        try:
            project_id = create_project(YamlFileBackend(args.data), args.name, args.project_id)
        except (yaml.YAMLError, ProjectValidationError) as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 2
        print(project_id)
        return 0

    data_path = Path(args.data)
    if not data_path.exists():
        print(f"Error: data file not found: {data_path}", file=sys.stderr)
        return 1

    try:
        store = _load_store(str(data_path), args.project)
    except (yaml.YAMLError, ProjectValidationError, ProjectNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except Exception as exc:  # Unexpected
        print(f"Unexpected error while loading project: {exc}", file=sys.stderr)
        return 1

    layout = layout_timeline(store.phases, palette=config.PALETTE, month_format=config.MONTH_LABEL_FORMAT)

    if args.command == "layout":
        print(_format_layout(layout))
        return 0

    try:
        render_gantt(
            layout,
            out_path=args.out,
            title=args.title if args.title is not None else store.project_name,
            min_width_percent=config.MIN_BAR_WIDTH_PERCENT,
        )
    except Exception as exc:
        print(f"Unexpected error while rendering: {exc}", file=sys.stderr)
        return 1
    logger.info("Wrote %s", args.out)

    if args.view:
        try:
            webbrowser.open(Path(args.out).resolve().as_uri())
        except Exception:
            logger.debug("Could not open %s", args.out)

    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
