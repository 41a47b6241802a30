"""SQLAlchemy goal repository.

Each public method opens its own session and transaction, so a goal
mutation is one read-modify-write unit: the row is loaded FOR UPDATE
(ignored by SQLite), converted to a Goal entity, mutated, synced back and
committed, or rolled back entirely if anything raises.

Listing translates GoalFilter into SQL with the same semantics as
goaltracker.services.goal_filter:
- equality on status / category / priority
- ILIKE substring search over title, description and tags (wildcards in
  the search term are escaped)
- ORDER BY created_at DESC, id DESC with OFFSET / LIMIT

Driver and SQLAlchemy errors surface as StorageFailure.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import ColumnElement, func, or_, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from goaltracker.domain.entities import Goal, GoalFilter, GoalPage, Milestone, Note
from goaltracker.domain.enums import GoalCategory, GoalPriority, GoalStatus
from goaltracker.domain.errors import GoalNotFoundError, StorageFailure
from goaltracker.models.goal import GoalRecord, MilestoneRecord, NoteRecord, TagRecord
from goaltracker.store.base import GoalMutation, GoalRepository

log = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Row <-> entity conversion
# ---------------------------------------------------------------------------


def to_entity(record: GoalRecord) -> Goal:
    """Convert a loaded GoalRecord (children included) into a Goal."""
    return Goal(
        id=record.id,
        user_id=record.user_id,
        title=record.title,
        description=record.description or "",
        category=GoalCategory(record.category),
        priority=GoalPriority(record.priority),
        status=GoalStatus(record.status),
        target_date=record.target_date,
        progress=record.progress,
        milestones=[
            Milestone(
                id=m.id,
                title=m.title,
                description=m.description or "",
                target_date=m.target_date,
                completed=m.completed,
                completed_at=m.completed_at,
            )
            for m in record.milestones
        ],
        tags=[t.value for t in record.tags],
        notes=[Note(id=n.id, content=n.content, created_at=n.created_at) for n in record.notes],
        completed_at=record.completed_at,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def apply_entity(record: GoalRecord, goal: Goal) -> None:
    """Write a Goal's state onto its record, syncing child rows in place.

    Milestones and notes are matched by id so surviving rows are updated
    rather than deleted and re-inserted. Tags are matched by position.
    """
    record.title = goal.title
    record.description = goal.description
    record.category = goal.category.value
    record.priority = goal.priority.value
    record.status = goal.status.value
    record.target_date = goal.target_date
    record.progress = goal.progress
    record.completed_at = goal.completed_at
    record.updated_at = goal.updated_at

    existing_milestones = {m.id: m for m in record.milestones}
    milestone_rows: list[MilestoneRecord] = []
    for position, milestone in enumerate(goal.milestones):
        row = existing_milestones.get(milestone.id) or MilestoneRecord(id=milestone.id)
        row.position = position
        row.title = milestone.title
        row.description = milestone.description
        row.target_date = milestone.target_date
        row.completed = milestone.completed
        row.completed_at = milestone.completed_at
        milestone_rows.append(row)
    record.milestones = milestone_rows

    existing_notes = {n.id: n for n in record.notes}
    note_rows: list[NoteRecord] = []
    for position, note in enumerate(goal.notes):
        row = existing_notes.get(note.id) or NoteRecord(id=note.id, content=note.content)
        row.position = position
        row.content = note.content
        row.created_at = note.created_at
        note_rows.append(row)
    record.notes = note_rows

    tag_rows = list(record.tags[: len(goal.tags)])
    for position, value in enumerate(goal.tags):
        if position < len(tag_rows):
            tag_rows[position].value = value
        else:
            tag_rows.append(TagRecord(position=position, value=value))
    record.tags = tag_rows


def filter_conditions(owner_id: uuid.UUID, goal_filter: GoalFilter) -> list[ColumnElement[bool]]:
    """Translate a GoalFilter into WHERE clauses, always scoped to the owner."""
    conditions: list[ColumnElement[bool]] = [GoalRecord.user_id == owner_id]

    if goal_filter.status is not None:
        conditions.append(GoalRecord.status == goal_filter.status.value)
    if goal_filter.category is not None:
        conditions.append(GoalRecord.category == goal_filter.category.value)
    if goal_filter.priority is not None:
        conditions.append(GoalRecord.priority == goal_filter.priority.value)

    term = goal_filter.search_term
    if term is not None:
        conditions.append(
            or_(
                GoalRecord.title.icontains(term, autoescape=True),
                GoalRecord.description.icontains(term, autoescape=True),
                GoalRecord.tags.any(TagRecord.value.icontains(term, autoescape=True)),
            )
        )

    return conditions


_NEWEST_FIRST = (GoalRecord.created_at.desc(), GoalRecord.id.desc())


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SqlGoalRepository(GoalRepository):
    """Goal storage on a relational database via SQLAlchemy async sessions."""

    backend_name = "database"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Yield a session inside one transaction, mapping DB errors to StorageFailure."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except (SQLAlchemyError, OSError) as exc:
            log.error("goal_store.sql.failed", operation=operation, error=str(exc))
            raise StorageFailure(f"Goal storage unavailable during {operation}") from exc

    async def _load(
        self,
        session: AsyncSession,
        goal_id: uuid.UUID,
        owner_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> GoalRecord:
        stmt = select(GoalRecord).where(
            GoalRecord.id == goal_id,
            GoalRecord.user_id == owner_id,
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        record = result.scalar_one_or_none()
        if record is None:
            raise GoalNotFoundError(f"Goal {goal_id} not found")
        return record

    async def add(self, goal: Goal) -> Goal:
        async with self._transaction("add") as session:
            record = GoalRecord(
                id=goal.id,
                user_id=goal.user_id,
                created_at=goal.created_at,
            )
            apply_entity(record, goal)
            session.add(record)
        log.debug("goal_store.sql.added", goal_id=str(goal.id))
        return goal

    async def get(self, goal_id: uuid.UUID, owner_id: uuid.UUID) -> Goal:
        async with self._transaction("get") as session:
            record = await self._load(session, goal_id, owner_id)
            return to_entity(record)

    async def list_page(
        self,
        owner_id: uuid.UUID,
        goal_filter: GoalFilter,
        *,
        page: int,
        limit: int,
    ) -> GoalPage:
        if page < 1:
            raise ValueError("page must be >= 1")
        if limit < 1:
            raise ValueError("limit must be >= 1")

        conditions = filter_conditions(owner_id, goal_filter)
        async with self._transaction("list_page") as session:
            total = await session.scalar(
                select(func.count()).select_from(GoalRecord).where(*conditions)
            )
            result = await session.execute(
                select(GoalRecord)
                .where(*conditions)
                .order_by(*_NEWEST_FIRST)
                .offset((page - 1) * limit)
                .limit(limit)
            )
            items = [to_entity(r) for r in result.scalars().all()]

        return GoalPage(items=items, total=int(total or 0), page=page, limit=limit)

    async def list_all(self, owner_id: uuid.UUID) -> list[Goal]:
        async with self._transaction("list_all") as session:
            result = await session.execute(
                select(GoalRecord).where(GoalRecord.user_id == owner_id).order_by(*_NEWEST_FIRST)
            )
            return [to_entity(r) for r in result.scalars().all()]

    async def mutate(
        self,
        goal_id: uuid.UUID,
        owner_id: uuid.UUID,
        mutation: GoalMutation,
    ) -> Goal:
        async with self._transaction("mutate") as session:
            record = await self._load(session, goal_id, owner_id, for_update=True)
            goal = to_entity(record)
            mutation(goal)
            apply_entity(record, goal)
        return goal

    async def delete(self, goal_id: uuid.UUID, owner_id: uuid.UUID) -> None:
        async with self._transaction("delete") as session:
            record = await self._load(session, goal_id, owner_id)
            await session.delete(record)
        log.debug("goal_store.sql.deleted", goal_id=str(goal_id))

    async def ping(self) -> bool:
        try:
            async with self._session_factory() as session:
                await session.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as exc:
            log.warning("goal_store.sql.ping_failed", error=str(exc))
            return False
        return True
