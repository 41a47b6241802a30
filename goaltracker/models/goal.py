"""Goal persistence models.

One row per goal plus ordered child tables for milestones, notes and tags.
Children carry a ``position`` column so insertion order survives a round
trip through the database.

All reads MUST filter on user_id; ownership is the isolation boundary.
Enum-valued columns are stored as VARCHAR to avoid PostgreSQL enum
migration pain.
"""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime
from typing import Any

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from goaltracker.database import Base, UTCDateTime


class GoalRecord(Base):
    """Persisted goal owned by exactly one user."""

    __tablename__ = "goals"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)

    user_id: Mapped[uuid.UUID] = mapped_column(
        nullable=False,
        comment="User who owns this goal - every query must filter on this column",
    )

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[str] = mapped_column(
        String(10), nullable=False, default="medium", server_default="medium"
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="not-started",
        server_default="not-started",
        comment="not-started | in-progress | completed | paused | cancelled",
    )
    target_date: Mapped[date] = mapped_column(Date, nullable=False)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    completed_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime,
        nullable=True,
        comment="UTC timestamp when goal was completed",
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=lambda: datetime.now(UTC),
        comment="UTC timestamp of goal creation",
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        nullable=False,
        default=lambda: datetime.now(UTC),
        comment="UTC timestamp of last modification",
    )

    milestones: Mapped[list[MilestoneRecord]] = relationship(
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="MilestoneRecord.position",
        lazy="selectin",
    )
    notes: Mapped[list[NoteRecord]] = relationship(
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="NoteRecord.position",
        lazy="selectin",
    )
    tags: Mapped[list[TagRecord]] = relationship(
        back_populates="goal",
        cascade="all, delete-orphan",
        order_by="TagRecord.position",
        lazy="selectin",
    )

    __table_args__ = (
        # Primary listing: a user's goals, newest first
        Index("idx_goals_user_created", "user_id", "created_at"),
        Index("idx_goals_user_status", "user_id", "status"),
        Index("idx_goals_user_category", "user_id", "category"),
        Index("idx_goals_target_date", "target_date"),
    )

    def __init__(self, **kwargs: Any) -> None:
        """Initialize with Python-level defaults.

        SQLAlchemy mapped_column(default=...) only fires on INSERT, not at
        Python __init__ time.  We set the Python defaults here so that new
        objects are usable immediately after construction, before any DB flush.
        """
        kwargs.setdefault("id", uuid.uuid4())
        kwargs.setdefault("status", "not-started")
        kwargs.setdefault("priority", "medium")
        kwargs.setdefault("progress", 0)
        kwargs.setdefault("description", "")
        kwargs.setdefault("created_at", datetime.now(UTC))
        kwargs.setdefault("updated_at", kwargs["created_at"])
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return f"<GoalRecord id={self.id} user={self.user_id} status={self.status!r}>"


class MilestoneRecord(Base):
    __tablename__ = "goal_milestones"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    goal_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    target_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    goal: Mapped[GoalRecord] = relationship(back_populates="milestones")

    def __repr__(self) -> str:
        return f"<MilestoneRecord id={self.id} goal={self.goal_id} completed={self.completed}>"


class NoteRecord(Base):
    __tablename__ = "goal_notes"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    goal_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, nullable=False, default=lambda: datetime.now(UTC)
    )

    goal: Mapped[GoalRecord] = relationship(back_populates="notes")


class TagRecord(Base):
    __tablename__ = "goal_tags"

    goal_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("goals.id", ondelete="CASCADE"), primary_key=True
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    value: Mapped[str] = mapped_column(String(50), nullable=False)

    goal: Mapped[GoalRecord] = relationship(back_populates="tags")
