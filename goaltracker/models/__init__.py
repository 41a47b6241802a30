"""ORM models package.

Import all models here so that SQLAlchemy's metadata is fully populated
when Alembic runs autogenerate.
"""

from goaltracker.models.goal import GoalRecord, MilestoneRecord, NoteRecord, TagRecord

__all__ = [
    "GoalRecord",
    "MilestoneRecord",
    "NoteRecord",
    "TagRecord",
]
