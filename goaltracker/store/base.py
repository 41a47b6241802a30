"""Goal repository interface.

Defines the GoalRepository ABC that every storage backend implements:
- SqlGoalRepository: production backend on SQLAlchemy (PostgreSQL)
- InMemoryGoalRepository: dict-based fallback when the database is down

Business rules never branch on the backend. They are expressed as
mutations (plain callables over a Goal entity) that a repository applies
inside its own atomic read-modify-write unit.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable

from goaltracker.domain.entities import Goal, GoalFilter, GoalPage

GoalMutation = Callable[[Goal], None]


class GoalRepository(ABC):
    """Abstract interface all goal storage backends must implement.

    Every read and write is scoped by ``owner_id``. A goal that exists but
    belongs to another owner is reported exactly like a missing goal, by
    raising GoalNotFoundError.
    """

    backend_name: str = "abstract"

    @abstractmethod
    async def add(self, goal: Goal) -> Goal:
        """Persist a new goal and return the stored copy."""

    @abstractmethod
    async def get(self, goal_id: uuid.UUID, owner_id: uuid.UUID) -> Goal:
        """Return one owned goal or raise GoalNotFoundError."""

    @abstractmethod
    async def list_page(
        self,
        owner_id: uuid.UUID,
        goal_filter: GoalFilter,
        *,
        page: int,
        limit: int,
    ) -> GoalPage:
        """Return one page of owned goals, filtered and newest first."""

    @abstractmethod
    async def list_all(self, owner_id: uuid.UUID) -> list[Goal]:
        """Return every goal owned by ``owner_id``, newest first."""

    @abstractmethod
    async def mutate(
        self,
        goal_id: uuid.UUID,
        owner_id: uuid.UUID,
        mutation: GoalMutation,
    ) -> Goal:
        """Apply ``mutation`` to one owned goal atomically.

        The goal is read, handed to ``mutation`` and written back as a whole.
        If ``mutation`` raises, nothing is stored and the exception
        propagates unchanged.
        """

    @abstractmethod
    async def delete(self, goal_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        """Hard-delete one owned goal or raise GoalNotFoundError."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return True if the backend can currently serve requests."""
