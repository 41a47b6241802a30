#!/usr/bin/env python3
"""Seed the development database with sample goals.

Creates, for one demo user:
  - 6 goals spread over every category-ish use case and status
  - milestones (some completed, so progress is derived), tags and notes
  - one overdue goal and one completed goal, so the stats page has data
  - Prints a dev JWT token for the demo user

Idempotent: if the demo user already owns goals, nothing is added.

Usage:
    # From project root (database must be running and migrated)
    python scripts/seed.py
"""

from __future__ import annotations

import asyncio
import sys
import uuid
from datetime import date, timedelta
from pathlib import Path
from typing import Any

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so "goaltracker.*" imports work
# whether this script is run directly or via "python scripts/seed.py".
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Stable id so re-running the seed finds the same user
DEMO_USER_ID = uuid.uuid5(uuid.NAMESPACE_DNS, "demo.goaltracker.local")


def sample_goals(today: date) -> list[dict[str, Any]]:
    """Goal payloads relative to ``today`` (the same shape the API accepts)."""
    return [
        {
            "title": "Run a half marathon",
            "description": "Build up from 5k to 21k over the spring.",
            "category": "health",
            "priority": "high",
            "target_date": (today + timedelta(days=120)).isoformat(),
            "tags": ["running", "fitness"],
            "milestones": [
                {"title": "Run 5k without stopping", "completed": True},
                {"title": "Run 10k", "completed": True},
                {"title": "Run 15k"},
                {"title": "Race day"},
            ],
        },
        {
            "title": "Get AWS Solutions Architect certification",
            "category": "career",
            "priority": "medium",
            "status": "in-progress",
            "target_date": (today + timedelta(days=60)).isoformat(),
            "tags": ["cloud", "certification"],
            "milestones": [
                {"title": "Finish video course", "completed": True},
                {"title": "Pass two practice exams"},
                {"title": "Book the exam"},
            ],
        },
        {
            "title": "Read 24 books this year",
            "category": "education",
            "priority": "low",
            "status": "in-progress",
            "progress": 40,
            "target_date": date(today.year, 12, 31).isoformat(),
            "tags": ["reading"],
        },
        {
            "title": "Build a three month emergency fund",
            "category": "finance",
            "priority": "high",
            "target_date": (today - timedelta(days=14)).isoformat(),
            "tags": ["savings"],
        },
        {
            "title": "Learn to bake sourdough",
            "category": "personal",
            "status": "completed",
            "target_date": (today - timedelta(days=30)).isoformat(),
            "tags": ["cooking"],
        },
        {
            "title": "Call grandparents every week",
            "category": "relationships",
            "status": "paused",
            "target_date": (today + timedelta(days=200)).isoformat(),
        },
    ]


async def seed_goals(service: Any, owner_id: uuid.UUID, today: date) -> int:
    """Create the sample goals for ``owner_id`` unless it already has some.

    Returns:
        Number of goals created
    """
    from goaltracker.domain.schemas import GoalCreate, NoteCreate, parse_payload

    existing = await service.list_goals(owner_id, limit=1)
    if existing.total:
        print(f"  [~] Demo user already has {existing.total} goals - skipping")
        return 0

    created = 0
    for payload in sample_goals(today):
        goal = await service.create_goal(owner_id, parse_payload(GoalCreate, payload))
        created += 1
        print(f"  [+] Goal created: {goal.title!r} ({goal.status.value}, {goal.progress}%)")

    first = (await service.list_goals(owner_id, limit=100)).items[-1]
    await service.add_note(
        first.id, owner_id, NoteCreate(content="Week 3: long run felt easy today.")
    )
    return created


async def seed() -> None:
    """Main seed routine - idempotent."""
    from goaltracker.auth.tokens import create_dev_token
    from goaltracker.config import get_settings
    from goaltracker.database import close_db, get_session_factory, init_db
    from goaltracker.services.goal_service import GoalService
    from goaltracker.store.sql import SqlGoalRepository

    settings = get_settings()
    init_db(settings)
    service = GoalService(SqlGoalRepository(get_session_factory()))

    await seed_goals(service, DEMO_USER_ID, date.today())

    token = create_dev_token(
        sub=DEMO_USER_ID,
        secret=settings.jwt_secret.get_secret_value(),
        audience=settings.jwt_audience,
        email="demo@goaltracker.local",
        expires_in=30 * 24 * 3600,
    )

    divider = "=" * 72
    print(f"\n{divider}")
    print("SEED COMPLETE - Development JWT token (valid 30 days):")
    print(divider)
    print(f"\n  User  : {DEMO_USER_ID}\n  Token : {token}")
    print(
        f"\n  curl -s -H 'Authorization: Bearer {token}' "
        "http://localhost:8000/api/v1/goals/stats/overview | python3 -m json.tool"
    )
    print(f"\n{divider}")
    print("  API Docs : http://localhost:8000/docs")
    print(f"{divider}\n")

    await close_db()


if __name__ == "__main__":
    asyncio.run(seed())
