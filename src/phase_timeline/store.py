from __future__ import annotations

import copy
import logging
import re
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Protocol

import yaml

from .duration import compute_duration
from .models import Attachment, MalformedRecord, Phase, PhaseTimelineError, User
from .parse_phases import (
    ProjectValidationError,
    load_document,
    parse_phase,
    parse_project,
    parse_users,
    phase_to_record,
    project_to_record,
)

logger = logging.getLogger(__name__)

Listener = Callable[[], None]

DEFAULT_PHASES: tuple[dict[str, Any], ...] = (
    {"name": "Planning Phase", "duration": "2 weeks", "content": "Initial project planning and requirement gathering"},
    {"name": "Design Phase", "duration": "3 weeks", "content": "System design and architecture planning"},
    {"name": "Development Phase", "duration": "8 weeks", "content": "Core development and implementation"},
    {"name": "Testing Phase", "duration": "2 weeks", "content": "Quality assurance and testing"},
    {"name": "Deployment Phase", "duration": "1 week", "content": "Production deployment and launch"},
)
"""Phases every new project starts with."""

PHASE_FIELDS = {"name", "start_date", "end_date", "duration", "content", "attachments", "reviewers"}


class ProjectNotFoundError(PhaseTimelineError):
    """Raised when a backend has no project with the requested id."""


class PhaseIndexError(PhaseTimelineError, IndexError):
    """Raised when a phase index does not point at a stored phase."""


class StorageBackend(Protocol):
    """Load/save contract every persistence backend implements."""

    def list_projects(self) -> dict[str, str]: ...

    def load_project(self, project_id: str) -> dict[str, Any] | None: ...

    def save_project(self, project_id: str, record: dict[str, Any]) -> None: ...

    def delete_project(self, project_id: str) -> None: ...

    def load_users(self) -> list[Any]: ...


class MemoryBackend:
    """Dictionary-backed storage, used for demos and offline work."""

    def __init__(self, projects: dict[str, dict[str, Any]] | None = None, users: list[Any] | None = None):
        self._projects: dict[str, dict[str, Any]] = copy.deepcopy(projects) if projects else {}
        self._users: list[Any] = copy.deepcopy(users) if users else []

    def list_projects(self) -> dict[str, str]:
        return {pid: str(record.get("name", "")) for pid, record in self._projects.items()}

    def load_project(self, project_id: str) -> dict[str, Any] | None:
        record = self._projects.get(project_id)
        return copy.deepcopy(record) if record is not None else None

    def save_project(self, project_id: str, record: dict[str, Any]) -> None:
        self._projects[project_id] = copy.deepcopy(record)

    def delete_project(self, project_id: str) -> None:
        self._projects.pop(project_id, None)

    def load_users(self) -> list[Any]:
        return copy.deepcopy(self._users)

    def set_users(self, users: list[Any]) -> None:
        self._users = copy.deepcopy(users)


class YamlFileBackend:
    """
    Storage in a single YAML document::

        projects:
          <id>: {name: ..., phases: [...]}
        users: [...]

    The whole file is re-read on every load and rewritten on every save.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def list_projects(self) -> dict[str, str]:
        return {pid: str(record.get("name", "")) for pid, record in self._projects(self._read()).items()}

    def load_project(self, project_id: str) -> dict[str, Any] | None:
        return self._projects(self._read()).get(project_id)

    def save_project(self, project_id: str, record: dict[str, Any]) -> None:
        document = self._read()
        projects = self._projects(document)
        projects[project_id] = record
        document["projects"] = projects
        self._write(document)

    def delete_project(self, project_id: str) -> None:
        document = self._read()
        projects = self._projects(document)
        if projects.pop(project_id, None) is not None:
            document["projects"] = projects
            self._write(document)

    def load_users(self) -> list[Any]:
        users = self._read().get("users")
        if users is None:
            return []
        if not isinstance(users, list):
            raise ProjectValidationError(f"{self.path}: 'users' must be a list")
        return users

    def _read(self) -> dict[str, Any]:
        return load_document(self.path)

    def _projects(self, document: dict[str, Any]) -> dict[str, Any]:
        projects = document.get("projects")
        if projects is None:
            return {}
        if not isinstance(projects, dict):
            raise ProjectValidationError(f"{self.path}: 'projects' must be a mapping of id to project")
        return {str(pid): record for pid, record in projects.items()}

    def _write(self, document: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fh:
            yaml.safe_dump(document, fh, sort_keys=False, allow_unicode=True)
        logger.debug("Wrote %s", self.path)


class _Subscribers:
    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def add(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception("Subscriber %r failed", listener)


class PhaseStore:
    """
    Phases of one project, read through a storage backend.

    The store holds the snapshot from the last ``refresh()``. Every mutation
    writes the whole project back and refreshes, so the snapshot always
    reflects what the backend holds. Subscribers are called after each refresh.
    """

    def __init__(self, backend: StorageBackend, project_id: str):
        self.backend = backend
        self.project_id = project_id
        self.project_name = ""
        self.phases: list[Phase] = []
        self.malformed: list[MalformedRecord] = []
        self._raw_phases: list[Any] = []
        self._subscribers = _Subscribers()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unregisters it."""
        return self._subscribers.add(listener)

    def refresh(self) -> list[Phase]:
        record = self.backend.load_project(self.project_id)
        if record is None:
            raise ProjectNotFoundError(f"Project '{self.project_id}' not found")
        project, malformed = parse_project(record, self.project_id)
        self.project_name = project.name
        self.phases = project.phases
        self.malformed = malformed
        self._raw_phases = list(record.get("phases") or [])
        for bad in malformed:
            logger.warning("Malformed phase record in project '%s': %s", self.project_id, bad.reason)
        logger.debug("Refreshed project '%s': %d phases", self.project_id, len(self.phases))
        self._subscribers.notify()
        return self.phases

    def add_phase(self, phase: Phase) -> None:
        # Round-trip through the boundary so bad values never reach storage.
        checked = parse_phase(phase_to_record(phase), f"phases[{len(self.phases)}]")
        records = self._current_records()
        records.append(phase_to_record(checked))
        self._save(records)

    def update_phase(self, index: int, **updates: Any) -> Phase:
        """
        Apply ``updates`` to the phase at ``index`` and persist.

        When the update touches a date and the result has both dates, the
        duration label is recomputed from them.
        """

        unknown = sorted(set(updates) - PHASE_FIELDS)
        if unknown:
            raise ProjectValidationError(f"Unknown phase fields {unknown}")
        current = self._phase_at(index)
        # Round-trip through the boundary so bad values never reach storage.
        updated = parse_phase(phase_to_record(replace(current, **updates)), f"phases[{index}]")
        if ("start_date" in updates or "end_date" in updates) and updated.is_dated:
            updated.duration = compute_duration(updated.start_date, updated.end_date)

        records = self._current_records()
        records[self._raw_index(index)] = phase_to_record(updated)
        self._save(records)
        return self.phases[index]

    def delete_phase(self, index: int) -> None:
        self._phase_at(index)
        records = self._current_records()
        del records[self._raw_index(index)]
        self._save(records)

    def add_attachment(self, index: int, attachment: Attachment) -> None:
        current = self._phase_at(index)
        self.update_phase(index, attachments=[*current.attachments, attachment])

    def _phase_at(self, index: int) -> Phase:
        if not 0 <= index < len(self.phases):
            raise PhaseIndexError(f"Phase index {index} out of range for project '{self.project_id}'")
        return self.phases[index]

    def _raw_index(self, index: int) -> int:
        # Malformed records stay in storage, so typed indexes skip over them.
        bad_positions = {_position_of(bad.path) for bad in self.malformed}
        good_positions = [pos for pos in range(len(self._raw_phases)) if pos not in bad_positions]
        return good_positions[index]

    def _current_records(self) -> list[Any]:
        return copy.deepcopy(self._raw_phases)

    def _save(self, records: list[Any]) -> None:
        self.backend.save_project(self.project_id, project_to_record(self.project_name, records))
        self.refresh()


class UserDirectory:
    """Available users, refreshed only when the caller asks."""

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self.users: list[User] = []
        self.malformed: list[MalformedRecord] = []
        self._subscribers = _Subscribers()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self._subscribers.add(listener)

    def refresh(self) -> list[User]:
        self.users, self.malformed = parse_users(self.backend.load_users())
        for bad in self.malformed:
            logger.warning("Malformed user record: %s", bad.reason)
        self._subscribers.notify()
        return self.users

    def find(self, user_id: str) -> User | None:
        for user in self.users:
            if user.id == user_id:
                return user
        return None


def create_project(backend: StorageBackend, name: str, project_id: str | None = None) -> str:
    """Store a new project seeded with DEFAULT_PHASES and return its id."""

    if not name.strip():
        raise ProjectValidationError("Project name must not be empty")
    pid = project_id or _slugify(name) or uuid.uuid4().hex[:8]
    if backend.load_project(pid) is not None:
        raise ProjectValidationError(f"Project '{pid}' already exists")
    phases = [dict(phase, attachments=[], reviewers=[]) for phase in DEFAULT_PHASES]
    backend.save_project(pid, project_to_record(name, phases))
    logger.info("Created project '%s' (%s)", name, pid)
    return pid


def _slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _position_of(path: str) -> int:
    match = re.search(r"phases\[(\d+)\]$", path)
    return int(match.group(1)) if match else -1
