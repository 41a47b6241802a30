"""Per-user goal statistics.

A read-time fold over every goal a user owns. Nothing is cached or stored;
each call recomputes from the goal set it is given.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime, time

from pydantic import BaseModel

from goaltracker.domain.entities import Goal
from goaltracker.domain.enums import CLOSED_STATUSES, GoalCategory, GoalStatus
from goaltracker.services.progress import percent


class CategoryCount(BaseModel):
    """Number of goals in one category."""

    category: GoalCategory
    count: int


class MonthlyCompletion(BaseModel):
    """Goals completed in one calendar month (UTC)."""

    year: int
    month: int
    count: int


class GoalStats(BaseModel):
    """Summary statistics for one user's goals."""

    total: int
    completed: int
    in_progress: int
    not_started: int
    paused: int
    cancelled: int
    overdue: int
    completion_rate: int
    categories: list[CategoryCount]
    monthly_progress: list[MonthlyCompletion]


def is_overdue(goal: Goal, now: datetime) -> bool:
    """Open goals become overdue once midnight UTC of the target date has passed."""
    due = datetime.combine(goal.target_date, time.min, tzinfo=UTC)
    return due < now and goal.status not in CLOSED_STATUSES


def compute_goal_stats(goals: Iterable[Goal], now: datetime) -> GoalStats:
    """Aggregate a user's goals into a GoalStats summary.

    Args:
        goals: All goals owned by one user
        now: Reference time for overdue detection (timezone-aware)

    Returns:
        GoalStats with counts, completion rate and histograms
    """
    goal_list = list(goals)
    statuses = Counter(g.status for g in goal_list)
    categories = Counter(g.category for g in goal_list)
    months = Counter(
        (completed.year, completed.month)
        for completed in (
            g.completed_at.astimezone(UTC) for g in goal_list if g.completed_at is not None
        )
    )

    total = len(goal_list)
    completed = statuses[GoalStatus.COMPLETED]

    return GoalStats(
        total=total,
        completed=completed,
        in_progress=statuses[GoalStatus.IN_PROGRESS],
        not_started=statuses[GoalStatus.NOT_STARTED],
        paused=statuses[GoalStatus.PAUSED],
        cancelled=statuses[GoalStatus.CANCELLED],
        overdue=sum(1 for g in goal_list if is_overdue(g, now)),
        completion_rate=percent(completed, total),
        categories=[
            CategoryCount(category=category, count=count)
            for category, count in sorted(categories.items(), key=lambda item: item[0].value)
        ],
        monthly_progress=[
            MonthlyCompletion(year=year, month=month, count=count)
            for (year, month), count in sorted(months.items())
        ],
    )
