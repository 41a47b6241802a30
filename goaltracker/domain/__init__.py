"""Goal domain: value enums, entities, errors and request schemas."""

from goaltracker.domain.entities import Goal, GoalFilter, GoalPage, Milestone, Note
from goaltracker.domain.enums import GoalCategory, GoalPriority, GoalStatus
from goaltracker.domain.errors import (
    GoalNotFoundError,
    GoalTrackerError,
    GoalValidationError,
    MilestoneNotFoundError,
    StorageFailure,
)

__all__ = [
    "Goal",
    "GoalCategory",
    "GoalFilter",
    "GoalNotFoundError",
    "GoalPage",
    "GoalPriority",
    "GoalStatus",
    "GoalTrackerError",
    "GoalValidationError",
    "Milestone",
    "MilestoneNotFoundError",
    "Note",
    "StorageFailure",
]
