"""Goal service - the owner-scoped goal store used by the API.

Takes validated request models, builds mutations and hands them to the configured
GoalRepository, which applies them as single read-modify-write units. The
progress/status rules run inside those mutations, so derived fields are
always committed together with the change that caused them.

Every operation takes the authenticated owner id. A goal that belongs to
someone else is indistinguishable from a missing one.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from datetime import datetime

import structlog

from goaltracker.domain.entities import Goal, GoalFilter, GoalPage, Note, utc_now
from goaltracker.domain.errors import GoalValidationError, MilestoneNotFoundError
from goaltracker.domain.schemas import (
    GoalCreate,
    GoalUpdate,
    MilestoneCreate,
    MilestoneReplace,
    MilestoneUpdate,
    NoteCreate,
)
from goaltracker.services.goal_stats import GoalStats, compute_goal_stats
from goaltracker.services.progress import (
    apply_milestone_changes,
    apply_status_change,
    build_milestone,
    recompute_progress,
)
from goaltracker.store.base import GoalRepository

log = structlog.get_logger(__name__)

_SCALAR_FIELDS = ("title", "description", "category", "priority", "target_date", "progress", "tags")


class GoalService:
    """Service for managing a user's goals, milestones and notes."""

    def __init__(
        self,
        repository: GoalRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialise goal service.

        Args:
            repository: Storage backend for goals
            clock: Source of "now" (UTC); injectable for tests
        """
        self._repository = repository
        self._clock = clock

    @property
    def backend_name(self) -> str:
        return self._repository.backend_name

    # ------------------------------------------------------------------ #
    # Goals
    # ------------------------------------------------------------------ #

    async def create_goal(self, owner_id: uuid.UUID, data: GoalCreate) -> Goal:
        """Create a new goal owned by ``owner_id``.

        Args:
            owner_id: Authenticated user id
            data: Validated goal fields

        Returns:
            The stored Goal
        """
        now = self._clock()

        goal = Goal(
            user_id=owner_id,
            title=data.title,
            description=data.description,
            category=data.category,
            priority=data.priority,
            target_date=data.target_date,
            progress=data.progress,
            tags=list(data.tags),
            created_at=now,
            updated_at=now,
        )

        if data.milestones:
            goal.milestones = [build_milestone(m.model_dump(), now) for m in data.milestones]
            recompute_progress(goal, now)

        if data.status is not None:
            apply_status_change(goal, data.status, now)

        stored = await self._repository.add(goal)

        log.info(
            "goal_service.create_goal",
            user_id=str(owner_id),
            goal_id=str(stored.id),
            backend=self.backend_name,
        )
        return stored

    async def get_goal(self, goal_id: uuid.UUID, owner_id: uuid.UUID) -> Goal:
        """Fetch one goal.

        Raises:
            GoalNotFoundError: If absent or owned by another user
        """
        return await self._repository.get(goal_id, owner_id)

    async def list_goals(
        self,
        owner_id: uuid.UUID,
        goal_filter: GoalFilter | None = None,
        *,
        page: int = 1,
        limit: int = 10,
    ) -> GoalPage:
        """List the owner's goals, filtered, newest first, one page at a time."""
        if page < 1:
            raise GoalValidationError.single("page", "must be a positive integer")
        if limit < 1:
            raise GoalValidationError.single("limit", "must be a positive integer")

        result = await self._repository.list_page(
            owner_id, goal_filter or GoalFilter(), page=page, limit=limit
        )

        log.debug(
            "goal_service.list_goals",
            user_id=str(owner_id),
            total=result.total,
            page=page,
            count=len(result.items),
        )
        return result

    async def update_goal(
        self,
        goal_id: uuid.UUID,
        owner_id: uuid.UUID,
        data: GoalUpdate,
    ) -> Goal:
        """Merge partial changes into a goal.

        Setting status to completed from any other status stamps
        completed_at and forces progress to 100, regardless of milestones.
        Replacing the milestone list re-derives progress and may
        auto-complete the goal.

        Raises:
            GoalValidationError: If a replaced milestone id is unknown or repeated
            GoalNotFoundError: If absent or owned by another user
        """
        cleaned = data.changes()
        now = self._clock()

        def mutation(goal: Goal) -> None:
            for name in _SCALAR_FIELDS:
                if name in cleaned:
                    setattr(goal, name, cleaned[name])

            if "milestones" in cleaned:
                goal.milestones = _replace_milestones(goal, cleaned["milestones"], now)
                recompute_progress(goal, now)
            elif "progress" in cleaned:
                # progress stays derived while milestones exist
                recompute_progress(goal, now)

            if "status" in cleaned:
                apply_status_change(goal, cleaned["status"], now)

            goal.updated_at = now

        updated = await self._repository.mutate(goal_id, owner_id, mutation)

        log.info(
            "goal_service.update_goal",
            goal_id=str(goal_id),
            fields=sorted(cleaned),
            status=updated.status.value,
        )
        return updated

    async def delete_goal(self, goal_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        """Hard-delete a goal.

        Raises:
            GoalNotFoundError: If absent or owned by another user
        """
        await self._repository.delete(goal_id, owner_id)
        log.info("goal_service.delete_goal", goal_id=str(goal_id))

    # ------------------------------------------------------------------ #
    # Milestones and notes
    # ------------------------------------------------------------------ #

    async def add_milestone(
        self,
        goal_id: uuid.UUID,
        owner_id: uuid.UUID,
        data: MilestoneCreate,
    ) -> Goal:
        """Append a milestone and re-derive progress."""
        now = self._clock()

        def mutation(goal: Goal) -> None:
            goal.milestones.append(build_milestone(data.model_dump(), now))
            recompute_progress(goal, now)
            goal.updated_at = now

        updated = await self._repository.mutate(goal_id, owner_id, mutation)
        log.info(
            "goal_service.add_milestone",
            goal_id=str(goal_id),
            milestone_id=str(updated.milestones[-1].id),
            progress=updated.progress,
        )
        return updated

    async def update_milestone(
        self,
        goal_id: uuid.UUID,
        milestone_id: uuid.UUID,
        owner_id: uuid.UUID,
        data: MilestoneUpdate,
    ) -> Goal:
        """Update or toggle one milestone and re-derive progress.

        Raises:
            MilestoneNotFoundError: If the goal has no milestone with that id
        """
        cleaned = data.changes()
        now = self._clock()

        def mutation(goal: Goal) -> None:
            milestone = goal.find_milestone(milestone_id)
            if milestone is None:
                raise MilestoneNotFoundError(f"Milestone {milestone_id} not found")
            apply_milestone_changes(milestone, cleaned, now)
            recompute_progress(goal, now)
            goal.updated_at = now

        updated = await self._repository.mutate(goal_id, owner_id, mutation)
        log.info(
            "goal_service.update_milestone",
            goal_id=str(goal_id),
            milestone_id=str(milestone_id),
            progress=updated.progress,
            status=updated.status.value,
        )
        return updated

    async def delete_milestone(
        self,
        goal_id: uuid.UUID,
        milestone_id: uuid.UUID,
        owner_id: uuid.UUID,
    ) -> Goal:
        """Remove one milestone and re-derive progress from the rest.

        Removing the last milestone leaves progress at its previous value.
        """
        now = self._clock()

        def mutation(goal: Goal) -> None:
            milestone = goal.find_milestone(milestone_id)
            if milestone is None:
                raise MilestoneNotFoundError(f"Milestone {milestone_id} not found")
            goal.milestones.remove(milestone)
            recompute_progress(goal, now)
            goal.updated_at = now

        updated = await self._repository.mutate(goal_id, owner_id, mutation)
        log.info(
            "goal_service.delete_milestone",
            goal_id=str(goal_id),
            milestone_id=str(milestone_id),
        )
        return updated

    async def add_note(self, goal_id: uuid.UUID, owner_id: uuid.UUID, data: NoteCreate) -> Goal:
        """Append a note. Notes are never edited or removed."""
        text = data.content
        now = self._clock()

        def mutation(goal: Goal) -> None:
            goal.notes.append(Note(content=text, created_at=now))
            goal.updated_at = now

        updated = await self._repository.mutate(goal_id, owner_id, mutation)
        log.info("goal_service.add_note", goal_id=str(goal_id), notes=len(updated.notes))
        return updated

    # ------------------------------------------------------------------ #
    # Statistics
    # ------------------------------------------------------------------ #

    async def get_stats(self, owner_id: uuid.UUID) -> GoalStats:
        """Compute summary statistics over every goal the owner has."""
        goals = await self._repository.list_all(owner_id)
        stats = compute_goal_stats(goals, self._clock())

        log.debug(
            "goal_service.get_stats",
            user_id=str(owner_id),
            total=stats.total,
            completion_rate=stats.completion_rate,
        )
        return stats


def _replace_milestones(goal: Goal, entries: list[MilestoneReplace], now: datetime) -> list:
    """Build the new milestone list for a wholesale replace.

    Entries carrying the id of an existing milestone update it in place
    (keeping its completed_at history); entries without an id are new. Each
    existing id may appear at most once.
    """
    errors: list[dict[str, str]] = []
    seen: set[uuid.UUID] = set()
    for index, entry in enumerate(entries):
        if entry.id is None:
            continue
        if entry.id in seen:
            errors.append({"field": f"milestones[{index}].id", "message": "is repeated"})
        elif goal.find_milestone(entry.id) is None:
            errors.append(
                {
                    "field": f"milestones[{index}].id",
                    "message": "does not match a milestone of this goal",
                }
            )
        seen.add(entry.id)
    if errors:
        raise GoalValidationError(errors)

    replaced = []
    for entry in entries:
        if entry.id is None:
            replaced.append(build_milestone(entry.model_dump(exclude={"id"}), now))
            continue
        existing = goal.find_milestone(entry.id)
        changes = {k: v for k, v in entry.changes().items() if k != "id"}
        apply_milestone_changes(existing, changes, now)
        replaced.append(existing)
    return replaced
