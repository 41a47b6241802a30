"""Tests for the per-user statistics fold."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime, timedelta, timezone

from goaltracker.domain.entities import Goal
from goaltracker.domain.enums import GoalCategory, GoalStatus
from goaltracker.services.goal_stats import compute_goal_stats, is_overdue

NOW = datetime(2026, 6, 15, 10, 0, tzinfo=UTC)
TODAY = NOW.date()


def _goal(**kwargs) -> Goal:
    kwargs.setdefault("category", GoalCategory.PERSONAL)
    kwargs.setdefault("target_date", TODAY + timedelta(days=30))
    return Goal(user_id=uuid.uuid4(), title="Goal", **kwargs)


class TestIsOverdue:
    def test_past_open_goal_is_overdue(self):
        goal = _goal(target_date=TODAY - timedelta(days=1), status=GoalStatus.IN_PROGRESS)
        assert is_overdue(goal, NOW) is True

    def test_completed_goal_is_never_overdue(self):
        goal = _goal(target_date=TODAY - timedelta(days=1), status=GoalStatus.COMPLETED)
        assert is_overdue(goal, NOW) is False

    def test_cancelled_goal_is_never_overdue(self):
        goal = _goal(target_date=TODAY - timedelta(days=10), status=GoalStatus.CANCELLED)
        assert is_overdue(goal, NOW) is False

    def test_due_today_is_overdue_once_the_day_started(self):
        goal = _goal(target_date=TODAY, status=GoalStatus.IN_PROGRESS)
        assert is_overdue(goal, NOW) is True

    def test_due_today_at_midnight_is_not_yet_overdue(self):
        goal = _goal(target_date=TODAY)
        midnight = datetime(TODAY.year, TODAY.month, TODAY.day, tzinfo=UTC)
        assert is_overdue(goal, midnight) is False

    def test_due_tomorrow_is_not_overdue(self):
        goal = _goal(target_date=TODAY + timedelta(days=1))
        assert is_overdue(goal, NOW) is False

    def test_deadline_is_utc_midnight_for_offset_clocks(self):
        goal = _goal(target_date=TODAY)
        # 23:30 on the previous day in UTC, although already the target day in UTC+2
        utc_plus_two = timezone(timedelta(hours=2))
        local = datetime(TODAY.year, TODAY.month, TODAY.day, 1, 30, tzinfo=utc_plus_two)
        assert is_overdue(goal, local) is False

    def test_paused_past_goal_is_overdue(self):
        goal = _goal(target_date=TODAY - timedelta(days=3), status=GoalStatus.PAUSED)
        assert is_overdue(goal, NOW) is True


class TestComputeGoalStats:
    def test_empty_set(self):
        stats = compute_goal_stats([], NOW)
        assert stats.total == 0
        assert stats.completion_rate == 0
        assert stats.categories == []
        assert stats.monthly_progress == []

    def test_counts_and_rate(self):
        goals = [
            _goal(status=GoalStatus.COMPLETED, completed_at=NOW),
            _goal(status=GoalStatus.IN_PROGRESS),
            _goal(status=GoalStatus.IN_PROGRESS),
            _goal(),
            _goal(status=GoalStatus.PAUSED),
            _goal(status=GoalStatus.CANCELLED),
        ]
        stats = compute_goal_stats(goals, NOW)
        assert stats.total == 6
        assert stats.completed == 1
        assert stats.in_progress == 2
        assert stats.not_started == 1
        assert stats.paused == 1
        assert stats.cancelled == 1
        assert stats.completion_rate == 17

    def test_overdue_scenario(self):
        goal = _goal(target_date=TODAY - timedelta(days=5), status=GoalStatus.IN_PROGRESS)
        assert compute_goal_stats([goal], NOW).overdue == 1

        goal.status = GoalStatus.COMPLETED
        goal.completed_at = NOW
        assert compute_goal_stats([goal], NOW).overdue == 0

    def test_categories_one_entry_per_present_category(self):
        goals = [
            _goal(category=GoalCategory.HEALTH),
            _goal(category=GoalCategory.FINANCE),
            _goal(category=GoalCategory.HEALTH),
        ]
        stats = compute_goal_stats(goals, NOW)
        assert {(c.category, c.count) for c in stats.categories} == {
            (GoalCategory.HEALTH, 2),
            (GoalCategory.FINANCE, 1),
        }

    def test_monthly_progress_ascending(self):
        goals = [
            _goal(status=GoalStatus.COMPLETED, completed_at=datetime(2026, 3, 2, tzinfo=UTC)),
            _goal(status=GoalStatus.COMPLETED, completed_at=datetime(2025, 12, 30, tzinfo=UTC)),
            _goal(status=GoalStatus.COMPLETED, completed_at=datetime(2026, 3, 20, tzinfo=UTC)),
            _goal(status=GoalStatus.IN_PROGRESS),
        ]
        stats = compute_goal_stats(goals, NOW)
        assert [(m.year, m.month, m.count) for m in stats.monthly_progress] == [
            (2025, 12, 1),
            (2026, 3, 2),
        ]

    def test_reopened_goal_still_counts_in_monthly_progress(self):
        goal = _goal(status=GoalStatus.IN_PROGRESS, completed_at=datetime(2026, 2, 1, tzinfo=UTC))
        stats = compute_goal_stats([goal], NOW)
        assert stats.completed == 0
        assert [(m.year, m.month) for m in stats.monthly_progress] == [(2026, 2)]

    def test_months_bucketed_in_utc(self):
        # 23:30 on Jan 31 at UTC-5 is already February in UTC
        eastern = timezone(timedelta(hours=-5))
        goal = _goal(
            status=GoalStatus.COMPLETED,
            completed_at=datetime(2026, 1, 31, 23, 30, tzinfo=eastern),
        )
        stats = compute_goal_stats([goal], NOW)
        assert [(m.year, m.month) for m in stats.monthly_progress] == [(2026, 2)]

    def test_serialises_with_snake_case_fields(self):
        stats = compute_goal_stats([_goal(category=GoalCategory.CAREER)], NOW)
        payload = stats.model_dump(mode="json")
        assert payload["completion_rate"] == 0
        assert payload["categories"] == [{"category": "career", "count": 1}]
        assert "monthly_progress" in payload
