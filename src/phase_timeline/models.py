from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal


ReviewStatus = Literal["pending", "approved", "rejected"]
"""Review states a phase reviewer can be in."""

REVIEW_STATUSES: tuple[str, ...] = ("pending", "approved", "rejected")

REVIEWER_ROLES: tuple[str, ...] = (
    "designer",
    "product-manager-1",
    "product-manager-2",
    "product-manager-3",
    "sponsor",
    "operator-1",
    "operator-2",
    "operator-3",
)
"""Roles that may be asked to review a phase."""


class PhaseTimelineError(Exception):
    """Base class for errors raised by phase_timeline."""


@dataclass
class Attachment:
    """File attached to a phase; only metadata is kept."""

    name: str
    size: int = 0
    url: str | None = None
    uploaded_at: datetime | None = None


@dataclass
class Reviewer:
    """A role asked to sign off a phase."""

    id: str
    role: str
    status: ReviewStatus = "pending"
    comment: str = ""
    reviewed_at: datetime | None = None


@dataclass
class Phase:
    """Named stage of a project, optionally dated."""

    name: str
    start_date: date | None = None
    end_date: date | None = None
    duration: str = ""
    content: str | None = None
    attachments: list[Attachment] = field(default_factory=list)
    reviewers: list[Reviewer] = field(default_factory=list)

    @property
    def is_dated(self) -> bool:
        """True when both ends of the phase are known."""
        return self.start_date is not None and self.end_date is not None


@dataclass
class Project:
    """Project with its ordered phases."""

    id: str
    name: str
    phases: list[Phase] = field(default_factory=list)


@dataclass
class User:
    """Entry of the available-users directory."""

    id: str
    username: str
    name: str
    role: str
    email: str | None = None
    department: str | None = None


@dataclass(frozen=True)
class MalformedRecord:
    """A stored record that could not be turned into a typed one."""

    path: str
    reason: str
    raw: Any = None

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        return f"{self.path}: {self.reason}"


@dataclass(frozen=True)
class TimeAxis:
    """Shared time axis spanning every dated phase, both ends inclusive."""

    min_date: date
    max_date: date
    total_days: int


@dataclass(frozen=True)
class PhaseBar:
    """Horizontal placement of one dated phase, in percent of the axis."""

    phase_index: int
    phase: Phase
    start_offset_days: int
    duration_days: int
    start_percent: float
    width_percent: float
    color: str


@dataclass(frozen=True)
class MonthLabel:
    """Calendar month segment of the axis, clipped to the axis ends."""

    label: str
    start: date
    end: date
    position_percent: float
    width_percent: float


@dataclass
class TimelineLayout:
    """
    Result of laying out a phase list.

    An absent axis means no phase carries both dates; bars and months are
    then empty and the caller shows a placeholder.
    """

    axis: TimeAxis | None = None
    bars: list[PhaseBar] = field(default_factory=list)
    months: list[MonthLabel] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.axis is None

    @property
    def phase_count(self) -> int:
        return len(self.bars)

    @property
    def total_days(self) -> int:
        return self.axis.total_days if self.axis is not None else 0
