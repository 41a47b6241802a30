"""In-memory goal repository (dev fallback and tests).

Goals live in a dict keyed by id. Every value handed out is a deep copy, so
callers can never change stored state except through ``mutate``. Listing
runs the reference filter/pagination engine directly.
"""

from __future__ import annotations

import asyncio
import copy
import uuid

import structlog

from goaltracker.domain.entities import Goal, GoalFilter, GoalPage
from goaltracker.domain.errors import GoalNotFoundError
from goaltracker.services.goal_filter import paginate, sort_newest_first
from goaltracker.store.base import GoalMutation, GoalRepository

log = structlog.get_logger(__name__)


class InMemoryGoalRepository(GoalRepository):
    """Dict-backed goal storage.

    Thread-safe via asyncio.Lock. Suitable for testing and single-process
    dev environments. Does NOT persist across process restarts.
    """

    backend_name = "memory"

    def __init__(self) -> None:
        self._goals: dict[uuid.UUID, Goal] = {}
        self._lock = asyncio.Lock()

    def _owned(self, goal_id: uuid.UUID, owner_id: uuid.UUID) -> Goal:
        goal = self._goals.get(goal_id)
        if goal is None or goal.user_id != owner_id:
            raise GoalNotFoundError(f"Goal {goal_id} not found")
        return goal

    async def add(self, goal: Goal) -> Goal:
        async with self._lock:
            self._goals[goal.id] = copy.deepcopy(goal)
        log.debug("goal_store.memory.added", goal_id=str(goal.id))
        return copy.deepcopy(goal)

    async def get(self, goal_id: uuid.UUID, owner_id: uuid.UUID) -> Goal:
        async with self._lock:
            return copy.deepcopy(self._owned(goal_id, owner_id))

    async def list_page(
        self,
        owner_id: uuid.UUID,
        goal_filter: GoalFilter,
        *,
        page: int,
        limit: int,
    ) -> GoalPage:
        async with self._lock:
            owned = [g for g in self._goals.values() if g.user_id == owner_id]
            result = paginate(owned, goal_filter, page=page, limit=limit)
            result.items = copy.deepcopy(result.items)
        return result

    async def list_all(self, owner_id: uuid.UUID) -> list[Goal]:
        async with self._lock:
            owned = [g for g in self._goals.values() if g.user_id == owner_id]
            return copy.deepcopy(sort_newest_first(owned))

    async def mutate(
        self,
        goal_id: uuid.UUID,
        owner_id: uuid.UUID,
        mutation: GoalMutation,
    ) -> Goal:
        async with self._lock:
            working = copy.deepcopy(self._owned(goal_id, owner_id))
            mutation(working)
            self._goals[goal_id] = working
            return copy.deepcopy(working)

    async def delete(self, goal_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        async with self._lock:
            self._owned(goal_id, owner_id)
            del self._goals[goal_id]
        log.debug("goal_store.memory.deleted", goal_id=str(goal_id))

    async def ping(self) -> bool:
        return True

    def __len__(self) -> int:
        return len(self._goals)
