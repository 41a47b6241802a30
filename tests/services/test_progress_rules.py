"""Tests for the progress and status rules (goaltracker.services.progress)."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime

import pytest

from goaltracker.domain.entities import Goal, Milestone
from goaltracker.domain.enums import GoalCategory, GoalStatus
from goaltracker.services.progress import (
    apply_milestone_changes,
    apply_status_change,
    build_milestone,
    percent,
    recompute_progress,
)

NOW = datetime(2026, 5, 1, 9, 30, tzinfo=UTC)
EARLIER = datetime(2026, 4, 1, 8, 0, tzinfo=UTC)


def _goal(milestones: list[Milestone] | None = None, **kwargs) -> Goal:
    return Goal(
        user_id=uuid.uuid4(),
        title="Learn Spanish",
        category=GoalCategory.EDUCATION,
        target_date=date(2026, 12, 31),
        milestones=milestones or [],
        **kwargs,
    )


def _milestones(done: int, total: int) -> list[Milestone]:
    return [Milestone(title=f"Step {i}", completed=i < done) for i in range(total)]


class TestPercent:
    @pytest.mark.parametrize(
        ("part", "whole", "expected"),
        [
            (0, 4, 0),
            (1, 4, 25),
            (2, 4, 50),
            (1, 3, 33),
            (2, 3, 67),
            (1, 8, 13),  # 12.5 rounds half up
            (3, 8, 38),  # 37.5 rounds half up
            (4, 4, 100),
        ],
    )
    def test_round_half_up(self, part, whole, expected):
        assert percent(part, whole) == expected

    def test_zero_whole_is_zero(self):
        assert percent(0, 0) == 0


class TestRecomputeProgress:
    def test_no_milestones_leaves_manual_progress(self):
        goal = _goal(progress=42)
        recompute_progress(goal, NOW)
        assert goal.progress == 42
        assert goal.status == GoalStatus.NOT_STARTED

    def test_half_done_sets_fifty_without_status_change(self):
        goal = _goal(_milestones(2, 4))
        recompute_progress(goal, NOW)
        assert goal.progress == 50
        assert goal.status == GoalStatus.NOT_STARTED
        assert goal.completed_at is None

    def test_all_done_auto_completes(self):
        goal = _goal(_milestones(4, 4), status=GoalStatus.IN_PROGRESS)
        recompute_progress(goal, NOW)
        assert goal.progress == 100
        assert goal.status == GoalStatus.COMPLETED
        assert goal.completed_at == NOW

    def test_already_completed_keeps_original_timestamp(self):
        goal = _goal(_milestones(2, 2), status=GoalStatus.COMPLETED, completed_at=EARLIER)
        recompute_progress(goal, NOW)
        assert goal.completed_at == EARLIER

    def test_unchecking_never_reverts_status(self):
        goal = _goal(_milestones(1, 2), status=GoalStatus.COMPLETED, completed_at=EARLIER)
        recompute_progress(goal, NOW)
        assert goal.progress == 50
        assert goal.status == GoalStatus.COMPLETED
        assert goal.completed_at == EARLIER

    def test_auto_completes_paused_goal(self):
        goal = _goal(_milestones(3, 3), status=GoalStatus.PAUSED)
        recompute_progress(goal, NOW)
        assert goal.status == GoalStatus.COMPLETED


class TestApplyStatusChange:
    def test_completing_forces_progress_and_stamps(self):
        goal = _goal(_milestones(0, 3), status=GoalStatus.IN_PROGRESS)
        apply_status_change(goal, GoalStatus.COMPLETED, NOW)
        assert goal.status == GoalStatus.COMPLETED
        assert goal.progress == 100
        assert goal.completed_at == NOW

    def test_completing_twice_keeps_first_timestamp(self):
        goal = _goal(status=GoalStatus.COMPLETED, completed_at=EARLIER, progress=100)
        apply_status_change(goal, GoalStatus.COMPLETED, NOW)
        assert goal.completed_at == EARLIER

    def test_leaving_completed_keeps_completed_at(self):
        goal = _goal(status=GoalStatus.COMPLETED, completed_at=EARLIER, progress=100)
        apply_status_change(goal, GoalStatus.IN_PROGRESS, NOW)
        assert goal.status == GoalStatus.IN_PROGRESS
        assert goal.completed_at == EARLIER
        assert goal.progress == 100

    def test_other_statuses_leave_progress_alone(self):
        goal = _goal(progress=10)
        apply_status_change(goal, GoalStatus.PAUSED, NOW)
        assert goal.status == GoalStatus.PAUSED
        assert goal.progress == 10
        assert goal.completed_at is None


class TestMilestoneChanges:
    def test_first_completion_stamps_completed_at(self):
        milestone = Milestone(title="Draft")
        apply_milestone_changes(milestone, {"completed": True}, NOW)
        assert milestone.completed is True
        assert milestone.completed_at == NOW

    def test_uncheck_keeps_completed_at(self):
        milestone = Milestone(title="Draft", completed=True, completed_at=EARLIER)
        apply_milestone_changes(milestone, {"completed": False}, NOW)
        assert milestone.completed is False
        assert milestone.completed_at == EARLIER

    def test_recheck_keeps_first_completed_at(self):
        milestone = Milestone(title="Draft", completed=False, completed_at=EARLIER)
        apply_milestone_changes(milestone, {"completed": True}, NOW)
        assert milestone.completed_at == EARLIER

    def test_title_edit_does_not_touch_completion(self):
        milestone = Milestone(title="Draft")
        apply_milestone_changes(milestone, {"title": "Final draft"}, NOW)
        assert milestone.title == "Final draft"
        assert milestone.completed_at is None

    def test_build_completed_milestone(self):
        milestone = build_milestone({"title": "Done already", "completed": True}, NOW)
        assert milestone.completed is True
        assert milestone.completed_at == NOW
        assert isinstance(milestone.id, uuid.UUID)
