"""Create goal tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

Tables:
  goals
    - id              UUID PK
    - user_id         UUID  (NOT NULL - goal owner, every query filters on it)
    - title           VARCHAR(100)
    - description     VARCHAR(500)
    - category        VARCHAR(20)   health|career|education|finance|personal|relationships|other
    - priority        VARCHAR(10)   low|medium|high  (default: medium)
    - status          VARCHAR(20)   not-started|in-progress|completed|paused|cancelled
    - target_date     DATE
    - progress        INTEGER 0..100
    - completed_at    TIMESTAMP WITH TIME ZONE (nullable, never cleared)
    - created_at / updated_at  TIMESTAMP WITH TIME ZONE

  goal_milestones, goal_notes, goal_tags
    - ordered children of goals (position column), ON DELETE CASCADE

Notes:
  - No FK from goals.user_id: identities live with the token issuer.
  - Enum-valued columns stored as VARCHAR to avoid PostgreSQL enum
    migration pain.
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create goals and its child tables with indexes."""

    op.create_table(
        "goals",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            nullable=False,
            comment="User who owns this goal - every query must filter on this column",
        ),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("category", sa.String(20), nullable=False),
        sa.Column("priority", sa.String(10), nullable=False, server_default="medium"),
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default="not-started",
            comment="not-started | in-progress | completed | paused | cancelled",
        ),
        sa.Column("target_date", sa.Date(), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "completed_at",
            sa.DateTime(timezone=True),
            nullable=True,
            comment="UTC timestamp when goal was completed",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="UTC timestamp of goal creation",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="UTC timestamp of last modification",
        ),
    )

    # Primary listing: a user's goals, newest first
    op.create_index("idx_goals_user_created", "goals", ["user_id", "created_at"])
    op.create_index("idx_goals_user_status", "goals", ["user_id", "status"])
    op.create_index("idx_goals_user_category", "goals", ["user_id", "category"])
    op.create_index("idx_goals_target_date", "goals", ["target_date"])

    op.create_table(
        "goal_milestones",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "goal_id",
            sa.Uuid(),
            sa.ForeignKey("goals.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("target_date", sa.Date(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_goal_milestones_goal_id", "goal_milestones", ["goal_id"])

    op.create_table(
        "goal_notes",
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "goal_id",
            sa.Uuid(),
            sa.ForeignKey("goals.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_goal_notes_goal_id", "goal_notes", ["goal_id"])

    op.create_table(
        "goal_tags",
        sa.Column(
            "goal_id",
            sa.Uuid(),
            sa.ForeignKey("goals.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("position", sa.Integer(), primary_key=True),
        sa.Column("value", sa.String(50), nullable=False),
    )


def downgrade() -> None:
    """Drop goal tables and their indexes."""

    op.drop_table("goal_tags")
    op.drop_index("ix_goal_notes_goal_id", table_name="goal_notes")
    op.drop_table("goal_notes")
    op.drop_index("ix_goal_milestones_goal_id", table_name="goal_milestones")
    op.drop_table("goal_milestones")
    op.drop_index("idx_goals_target_date", table_name="goals")
    op.drop_index("idx_goals_user_category", table_name="goals")
    op.drop_index("idx_goals_user_status", table_name="goals")
    op.drop_index("idx_goals_user_created", table_name="goals")
    op.drop_table("goals")
