"""Error taxonomy shared by the services, repositories and API layer."""

from __future__ import annotations

from typing import Any


class GoalTrackerError(Exception):
    """Base class for all domain errors."""


class GoalValidationError(GoalTrackerError, ValueError):
    """Raised when goal, milestone or note input is malformed.

    Carries field-level detail so the API can report every problem at once.
    """

    def __init__(self, errors: list[dict[str, str]]) -> None:
        self.errors = errors
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        super().__init__(f"Validation failed: {summary}")

    @classmethod
    def single(cls, field: str, message: str) -> GoalValidationError:
        return cls([{"field": field, "message": message}])

    def to_dict(self) -> dict[str, Any]:
        return {"detail": "Validation errors", "errors": self.errors}


class GoalNotFoundError(GoalTrackerError):
    """Raised when a goal does not exist or is not owned by the caller.

    Both cases are reported identically so goal ids of other users are
    never confirmed.
    """


class MilestoneNotFoundError(GoalNotFoundError):
    """Raised when a milestone id is unknown within an owned goal."""


class StorageFailure(GoalTrackerError):
    """Raised when the underlying persistence layer is unavailable."""
