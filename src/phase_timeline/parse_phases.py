from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import yaml

from .dates import coerce_date, parse_iso_datetime
from .models import (
    REVIEW_STATUSES,
    Attachment,
    MalformedRecord,
    Phase,
    PhaseTimelineError,
    Project,
    Reviewer,
    User,
)


class ProjectValidationError(PhaseTimelineError):
    """Raised when a stored document or record has the wrong shape."""


PHASE_KEYS = {"name", "start_date", "end_date", "duration", "content", "attachments", "reviewers"}
ATTACHMENT_KEYS = {"name", "size", "url", "uploaded_at"}
REVIEWER_KEYS = {"id", "role", "status", "comment", "reviewed_at"}
USER_KEYS = {"id", "username", "name", "role", "email", "department"}


@dataclass(frozen=True)
class _Path:
    """Helper to produce readable record paths like phases[0].reviewers[1]."""

    parts: tuple[str, ...] = ()

    def child(self, segment: str) -> "_Path":
        return _Path(self.parts + (segment,))

    def __str__(self) -> str:  # pragma: no cover - trivial
        return ".".join(self.parts) if self.parts else "root"


@dataclass
class ParsedPhases:
    """Typed phases plus the records that could not be parsed."""

    phases: list[Phase] = field(default_factory=list)
    malformed: list[MalformedRecord] = field(default_factory=list)


def load_document(path: str | Path) -> dict[str, Any]:
    """Read a YAML storage document; a missing file reads as empty."""

    doc_path = Path(path)
    if not doc_path.exists():
        return {}
    with doc_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ProjectValidationError(f"{doc_path}: expected mapping at top level")
    return raw


def parse_project(data: Any, project_id: str) -> tuple[Project, list[MalformedRecord]]:
    """Build a Project from a stored mapping, collecting malformed phases."""

    path = _Path((f"projects[{project_id}]",))
    if not isinstance(data, dict):
        raise ProjectValidationError(f"{path}: expected mapping for project")
    _assert_allowed_keys(data, {"name", "phases"}, path)
    name = _require_str(data, "name", path)

    phases_raw = data.get("phases")
    if phases_raw is None:
        phases_raw = []
    if not isinstance(phases_raw, list):
        raise ProjectValidationError(f"{path}.phases: expected list")

    parsed = parse_phases(phases_raw, f"{path}.phases")
    return Project(id=project_id, name=name, phases=parsed.phases), parsed.malformed


def parse_phases(records: Iterable[Any], prefix: str = "phases") -> ParsedPhases:
    """
    Parse each phase record independently.

    A record that fails validation is reported as a MalformedRecord and left
    out of the typed list; it never stops the remaining records from loading.
    """

    result = ParsedPhases()
    for idx, raw in enumerate(records):
        record_path = _Path((f"{prefix}[{idx}]",))
        try:
            result.phases.append(parse_phase(raw, record_path))
        except ProjectValidationError as exc:
            result.malformed.append(MalformedRecord(path=str(record_path), reason=str(exc), raw=raw))
    return result


def parse_phase(data: Any, path: _Path | str = "phase") -> Phase:
    if isinstance(path, str):
        path = _Path((path,))
    if not isinstance(data, dict):
        raise ProjectValidationError(f"{path}: expected mapping for phase")

    _assert_allowed_keys(data, PHASE_KEYS, path)
    name = _require_str(data, "name", path)
    start_date = _parse_optional_date(data.get("start_date"), path.child("start_date"))
    end_date = _parse_optional_date(data.get("end_date"), path.child("end_date"))

    duration = data.get("duration", "")
    if duration is None:
        duration = ""
    if not isinstance(duration, str):
        raise ProjectValidationError(f"{path}.duration: expected string")

    content = data.get("content")
    if content is not None and not isinstance(content, str):
        raise ProjectValidationError(f"{path}.content: expected string")

    attachments = [
        _parse_attachment(item, path.child(f"attachments[{idx}]"))
        for idx, item in enumerate(_optional_list(data, "attachments", path))
    ]
    reviewers = [
        _parse_reviewer(item, path.child(f"reviewers[{idx}]"))
        for idx, item in enumerate(_optional_list(data, "reviewers", path))
    ]

    return Phase(
        name=name,
        start_date=start_date,
        end_date=end_date,
        duration=duration,
        content=content,
        attachments=attachments,
        reviewers=reviewers,
    )


def parse_users(records: Any) -> tuple[list[User], list[MalformedRecord]]:
    """Parse the users list; bad entries become MalformedRecord results."""

    if records is None:
        return [], []
    if not isinstance(records, list):
        raise ProjectValidationError("users: expected list")

    users: list[User] = []
    malformed: list[MalformedRecord] = []
    for idx, raw in enumerate(records):
        path = _Path((f"users[{idx}]",))
        try:
            users.append(_parse_user(raw, path))
        except ProjectValidationError as exc:
            malformed.append(MalformedRecord(path=str(path), reason=str(exc), raw=raw))
    return users, malformed


def _parse_user(data: Any, path: _Path) -> User:
    if not isinstance(data, dict):
        raise ProjectValidationError(f"{path}: expected mapping for user")
    _assert_allowed_keys(data, USER_KEYS, path)
    return User(
        id=_require_id(data, path),
        username=_require_str(data, "username", path),
        name=_require_str(data, "name", path),
        role=_require_str(data, "role", path),
        email=_optional_str(data, "email", path),
        department=_optional_str(data, "department", path),
    )


def _parse_attachment(data: Any, path: _Path) -> Attachment:
    if not isinstance(data, dict):
        raise ProjectValidationError(f"{path}: expected mapping for attachment")
    _assert_allowed_keys(data, ATTACHMENT_KEYS, path)
    size = data.get("size", 0)
    if isinstance(size, bool) or not isinstance(size, int) or size < 0:
        raise ProjectValidationError(f"{path}.size: expected non-negative integer")
    return Attachment(
        name=_require_str(data, "name", path),
        size=size,
        url=_optional_str(data, "url", path),
        uploaded_at=_parse_optional_datetime(data.get("uploaded_at"), path.child("uploaded_at")),
    )


def _parse_reviewer(data: Any, path: _Path) -> Reviewer:
    if not isinstance(data, dict):
        raise ProjectValidationError(f"{path}: expected mapping for reviewer")
    _assert_allowed_keys(data, REVIEWER_KEYS, path)
    status = data.get("status", "pending")
    if status not in REVIEW_STATUSES:
        raise ProjectValidationError(f"{path}.status: expected one of {list(REVIEW_STATUSES)}")
    comment = data.get("comment") or ""
    if not isinstance(comment, str):
        raise ProjectValidationError(f"{path}.comment: expected string")
    return Reviewer(
        id=_require_id(data, path),
        role=_require_str(data, "role", path),
        status=status,
        comment=comment,
        reviewed_at=_parse_optional_datetime(data.get("reviewed_at"), path.child("reviewed_at")),
    )


def phase_to_record(phase: Phase) -> dict[str, Any]:
    """Plain mapping for a phase, with dates as ISO strings."""

    record: dict[str, Any] = {"name": phase.name}
    if phase.start_date is not None:
        record["start_date"] = _iso(phase.start_date)
    if phase.end_date is not None:
        record["end_date"] = _iso(phase.end_date)
    record["duration"] = phase.duration
    if phase.content is not None:
        record["content"] = phase.content
    record["attachments"] = [
        _drop_none(
            {
                "name": att.name,
                "size": att.size,
                "url": att.url,
                "uploaded_at": att.uploaded_at.isoformat() if att.uploaded_at else None,
            }
        )
        for att in phase.attachments
    ]
    record["reviewers"] = [
        _drop_none(
            {
                "id": rev.id,
                "role": rev.role,
                "status": rev.status,
                "comment": rev.comment,
                "reviewed_at": rev.reviewed_at.isoformat() if rev.reviewed_at else None,
            }
        )
        for rev in phase.reviewers
    ]
    return record


def project_to_record(name: str, phase_records: list[Any]) -> dict[str, Any]:
    return {"name": name, "phases": phase_records}


def _iso(value: Any) -> str:
    if isinstance(value, (_dt.date, _dt.datetime)):
        return coerce_date(value).isoformat()
    return str(value)


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def _assert_allowed_keys(data: dict[str, Any], allowed: set[str], path: _Path) -> None:
    extras = sorted(set(data.keys()) - allowed)
    if extras:
        raise ProjectValidationError(f"{path}: unexpected fields {extras}")


def _require_str(data: dict[str, Any], key: str, path: _Path) -> str:
    value = _require_value(data, key, path)
    if not isinstance(value, str) or not value.strip():
        raise ProjectValidationError(f"{path.child(key)}: expected non-empty string")
    return value


def _require_id(data: dict[str, Any], path: _Path) -> str:
    value = _require_value(data, "id", path)
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ProjectValidationError(f"{path.child('id')}: expected string or integer id")
    return str(value)


def _optional_str(data: dict[str, Any], key: str, path: _Path) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ProjectValidationError(f"{path.child(key)}: expected string")
    return value


def _optional_list(data: dict[str, Any], key: str, path: _Path) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ProjectValidationError(f"{path.child(key)}: expected list")
    return value


def _require_value(data: dict[str, Any], key: str, path: _Path) -> Any:
    if key not in data:
        raise ProjectValidationError(f"{path}: missing required field '{key}'")
    return data[key]


def _parse_optional_date(value: Any, path: _Path) -> _dt.date | None:
    if value is None or value == "":
        return None
    if isinstance(value, str) or isinstance(value, _dt.date):
        try:
            return coerce_date(value)
        except ValueError as exc:
            raise ProjectValidationError(f"{path}: expected YYYY-MM-DD date") from exc
    raise ProjectValidationError(f"{path}: expected YYYY-MM-DD date")


def _parse_optional_datetime(value: Any, path: _Path) -> _dt.datetime | None:
    if value is None:
        return None
    if isinstance(value, _dt.datetime):
        return value
    if isinstance(value, _dt.date):
        return _dt.datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return parse_iso_datetime(value)
        except ValueError as exc:
            raise ProjectValidationError(f"{path}: expected ISO-8601 timestamp") from exc
    raise ProjectValidationError(f"{path}: expected ISO-8601 timestamp")
