"""Closed value domains for goal fields."""

from __future__ import annotations

from enum import StrEnum


class GoalCategory(StrEnum):
    HEALTH = "health"
    CAREER = "career"
    EDUCATION = "education"
    FINANCE = "finance"
    PERSONAL = "personal"
    RELATIONSHIPS = "relationships"
    OTHER = "other"


class GoalPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GoalStatus(StrEnum):
    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    PAUSED = "paused"
    CANCELLED = "cancelled"


# Statuses that never count toward the overdue total
CLOSED_STATUSES = frozenset({GoalStatus.COMPLETED, GoalStatus.CANCELLED})
