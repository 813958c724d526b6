from __future__ import annotations

import datetime as _dt
import uuid
from dataclasses import replace
from typing import Any

from .dates import coerce_date
from .duration import DATE_FIELDS, compute_duration, sync_duration
from .models import REVIEW_STATUSES, REVIEWER_ROLES, Phase, PhaseTimelineError, Reviewer
from .store import PhaseStore

DRAFT_FIELDS = ("name", "start_date", "end_date", "duration", "content")
DEFAULT_CONTENT = "Content of Project(New)"


class EditorError(PhaseTimelineError):
    """Raised for invalid editing actions (no open session, unknown field or reviewer)."""


class PhaseEditor:
    """
    Editing session for a single phase of a PhaseStore.

    Field edits go to a draft; dates drive the duration label while both are
    present. Nothing reaches the store until ``save()``.
    """

    def __init__(self, store: PhaseStore):
        self.store = store
        self.index: int | None = None
        self.draft: dict[str, Any] = {}
        self.reviewers: list[Reviewer] = []

    @property
    def is_open(self) -> bool:
        return self.index is not None

    def begin(self, index: int) -> dict[str, Any]:
        if not 0 <= index < len(self.store.phases):
            raise EditorError(f"No phase at index {index}")
        phase = self.store.phases[index]
        self.index = index
        self.draft = {
            "name": phase.name,
            "start_date": phase.start_date,
            "end_date": phase.end_date,
            "duration": phase.duration,
            "content": phase.content or DEFAULT_CONTENT,
        }
        self.reviewers = [replace(reviewer) for reviewer in phase.reviewers]
        return dict(self.draft)

    def set_field(self, field: str, value: Any) -> dict[str, Any]:
        """Set one draft field and return the draft after duration sync."""

        self._require_open()
        if field not in DRAFT_FIELDS:
            raise EditorError(f"Field '{field}' cannot be edited")
        if field in DATE_FIELDS:
            value = _date_or_none(value, field)
        self.draft = sync_duration({**self.draft, field: value}, field)
        return dict(self.draft)

    def available_roles(self) -> list[str]:
        taken = {reviewer.role for reviewer in self.reviewers}
        return [role for role in REVIEWER_ROLES if role not in taken]

    def add_reviewer(self, role: str) -> Reviewer:
        self._require_open()
        if role not in REVIEWER_ROLES:
            raise EditorError(f"Unknown reviewer role '{role}'")
        if role not in self.available_roles():
            raise EditorError(f"Role '{role}' is already reviewing this phase")
        reviewer = Reviewer(id=uuid.uuid4().hex[:9], role=role)
        self.reviewers.append(reviewer)
        return reviewer

    def remove_reviewer(self, reviewer_id: str) -> None:
        self._require_open()
        self.reviewers = [r for r in self.reviewers if r.id != reviewer_id]

    def set_reviewer_status(self, reviewer_id: str, status: str) -> Reviewer:
        self._require_open()
        if status not in REVIEW_STATUSES:
            raise EditorError(f"Unknown review status '{status}'")
        reviewer = self._reviewer(reviewer_id)
        reviewer.status = status  # type: ignore[assignment]
        reviewer.reviewed_at = _dt.datetime.now()
        return reviewer

    def set_reviewer_comment(self, reviewer_id: str, comment: str) -> Reviewer:
        self._require_open()
        reviewer = self._reviewer(reviewer_id)
        reviewer.comment = comment
        return reviewer

    def save(self) -> Phase:
        """Write the draft through the store and close the session."""

        self._require_open()
        updates = dict(self.draft)
        if updates.get("start_date") and updates.get("end_date"):
            updates["duration"] = compute_duration(updates["start_date"], updates["end_date"])
        updates["reviewers"] = list(self.reviewers)
        index = self.index
        assert index is not None
        saved = self.store.update_phase(index, **updates)
        self._close()
        return saved

    def cancel(self) -> None:
        self._require_open()
        self._close()

    def _reviewer(self, reviewer_id: str) -> Reviewer:
        for reviewer in self.reviewers:
            if reviewer.id == reviewer_id:
                return reviewer
        raise EditorError(f"No reviewer with id '{reviewer_id}'")

    def _require_open(self) -> None:
        if self.index is None:
            raise EditorError("No phase is being edited")

    def _close(self) -> None:
        self.index = None
        self.draft = {}
        self.reviewers = []


def _date_or_none(value: Any, field: str) -> _dt.date | None:
    if value is None or value == "":
        return None
    try:
        return coerce_date(value)
    except ValueError as exc:
        raise EditorError(f"{field}: expected YYYY-MM-DD date") from exc
