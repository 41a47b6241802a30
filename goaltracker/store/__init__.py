"""Goal storage backends.

The factory build_goal_repository() selects the backend from settings.
The database is preferred; in AUTO mode the in-memory repository is the
fallback so the app keeps serving when the database is unreachable.
"""

from __future__ import annotations

import structlog

from goaltracker.config import GoalStoreBackend, Settings
from goaltracker.database import create_schema, get_engine, get_session_factory, ping_database
from goaltracker.store.base import GoalMutation, GoalRepository
from goaltracker.store.memory import InMemoryGoalRepository
from goaltracker.store.sql import SqlGoalRepository

log = structlog.get_logger(__name__)

__all__ = [
    "GoalMutation",
    "GoalRepository",
    "InMemoryGoalRepository",
    "SqlGoalRepository",
    "build_goal_repository",
]


async def build_goal_repository(settings: Settings) -> GoalRepository:
    """Return the GoalRepository for the configured backend.

    Must be called after init_db() unless ``settings.goal_store`` is MEMORY.

    Args:
        settings: Application Settings instance.

    Returns:
        A GoalRepository implementation ready for use.
    """
    if settings.goal_store == GoalStoreBackend.MEMORY:
        log.info("goal_store.backend_selected", backend="memory", reason="configured")
        return InMemoryGoalRepository()

    engine = get_engine()
    if settings.goal_store == GoalStoreBackend.DATABASE:
        log.info("goal_store.backend_selected", backend="database", reason="configured")
        return SqlGoalRepository(get_session_factory())

    if await ping_database(engine, settings.db_connect_timeout_seconds):
        if settings.is_dev:
            await create_schema(engine)
        log.info("goal_store.backend_selected", backend="database", reason="reachable")
        return SqlGoalRepository(get_session_factory())

    log.warning(
        "goal_store.fallback_to_memory",
        reason="database unreachable - goals will not survive a restart",
        db_url=settings.database_url.split("@")[-1],
    )
    return InMemoryGoalRepository()
