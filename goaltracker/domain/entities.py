"""Storage-independent goal entities.

Repositories convert to and from these dataclasses so that the rule engine,
the filter engine and the statistics aggregator never see ORM objects.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

from goaltracker.domain.enums import GoalCategory, GoalPriority, GoalStatus


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Milestone:
    title: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    description: str = ""
    target_date: date | None = None
    completed: bool = False
    completed_at: datetime | None = None


@dataclass
class Note:
    content: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    created_at: datetime = field(default_factory=utc_now)


@dataclass
class Goal:
    user_id: uuid.UUID
    title: str
    category: GoalCategory
    target_date: date
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    description: str = ""
    priority: GoalPriority = GoalPriority.MEDIUM
    status: GoalStatus = GoalStatus.NOT_STARTED
    progress: int = 0
    milestones: list[Milestone] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    notes: list[Note] = field(default_factory=list)
    completed_at: datetime | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def find_milestone(self, milestone_id: uuid.UUID) -> Milestone | None:
        for milestone in self.milestones:
            if milestone.id == milestone_id:
                return milestone
        return None

    @property
    def completed_milestones(self) -> int:
        return sum(1 for m in self.milestones if m.completed)


@dataclass(frozen=True)
class GoalFilter:
    """Optional list predicates. ``None`` means no filter on that field."""

    status: GoalStatus | None = None
    category: GoalCategory | None = None
    priority: GoalPriority | None = None
    search: str | None = None

    @property
    def search_term(self) -> str | None:
        """Trimmed search text, or None when blank."""
        if self.search is None:
            return None
        term = self.search.strip()
        return term or None


@dataclass
class GoalPage:
    items: list[Goal]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit)
