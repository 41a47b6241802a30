"""Progress and status rules for goals.

Pure functions over domain entities; they mutate the goal passed in and
never touch storage. Callers run them inside a repository mutation so the
derived fields are committed together with the change that caused them.

Rules::

    milestones empty      -> progress untouched (manual value)
    milestones non-empty  -> progress = round_half_up(100 * done / total)
    progress == 100       -> status forced to completed, completed_at = now
    un-checking           -> progress drops, status and completed_at stay

The engine only ever raises status. It never reverts a completed goal.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from goaltracker.domain.entities import Goal, Milestone
from goaltracker.domain.enums import GoalStatus


def percent(part: int, whole: int) -> int:
    """Round-half-up integer percentage, 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def recompute_progress(goal: Goal, now: datetime) -> None:
    """Derive progress from milestones and auto-complete at 100%."""
    if not goal.milestones:
        return

    goal.progress = percent(goal.completed_milestones, len(goal.milestones))

    if goal.progress == 100 and goal.status != GoalStatus.COMPLETED:
        goal.status = GoalStatus.COMPLETED
        goal.completed_at = now


def apply_status_change(goal: Goal, status: GoalStatus, now: datetime) -> None:
    """Set status directly.

    Moving into completed from any other status forces progress to 100 and
    stamps completed_at, whatever the milestones say. Leaving completed does
    not clear completed_at.
    """
    if status == GoalStatus.COMPLETED and goal.status != GoalStatus.COMPLETED:
        goal.completed_at = now
        goal.progress = 100
    goal.status = status


def apply_milestone_changes(milestone: Milestone, changes: Mapping[str, Any], now: datetime) -> None:
    """Merge validated changes into a milestone.

    The first transition to completed stamps completed_at; un-checking keeps
    the earlier timestamp.
    """
    for name, value in changes.items():
        setattr(milestone, name, value)

    if milestone.completed and milestone.completed_at is None:
        milestone.completed_at = now


def build_milestone(fields: Mapping[str, Any], now: datetime) -> Milestone:
    milestone = Milestone(title=fields["title"])
    apply_milestone_changes(milestone, {k: v for k, v in fields.items() if k != "title"}, now)
    return milestone
