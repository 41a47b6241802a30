"""Goals API endpoints.

GET    /api/v1/goals                                  - List goals (filter, search, paginate)
POST   /api/v1/goals                                  - Create a goal
GET    /api/v1/goals/stats/overview                   - Summary statistics
GET    /api/v1/goals/{id}                             - Fetch one goal
PATCH  /api/v1/goals/{id}                             - Update a goal
DELETE /api/v1/goals/{id}                             - Delete a goal
POST   /api/v1/goals/{id}/milestones                  - Add a milestone
PATCH  /api/v1/goals/{id}/milestones/{milestone_id}   - Update or toggle a milestone
DELETE /api/v1/goals/{id}/milestones/{milestone_id}   - Delete a milestone
POST   /api/v1/goals/{id}/notes                       - Append a note

All endpoints are scoped to the authenticated user; another user's goal is
reported as not found. Bodies and the list query string are declared as
pydantic models; every field problem comes back in one 400 response.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import BaseModel

from goaltracker.auth.dependencies import AuthenticatedUser, get_current_user
from goaltracker.config import Settings, get_settings
from goaltracker.domain.entities import Goal
from goaltracker.domain.enums import GoalCategory, GoalPriority, GoalStatus
from goaltracker.domain.errors import GoalValidationError
from goaltracker.domain.schemas import (
    GoalCreate,
    GoalListQuery,
    GoalUpdate,
    MilestoneCreate,
    MilestoneUpdate,
    NoteCreate,
)
from goaltracker.services.goal_service import GoalService
from goaltracker.services.goal_stats import GoalStats

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/goals", tags=["goals"])


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class MilestoneResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    target_date: date | None
    completed: bool
    completed_at: datetime | None

    model_config = {"from_attributes": True}


class NoteResponse(BaseModel):
    id: uuid.UUID
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class GoalResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    description: str
    category: GoalCategory
    priority: GoalPriority
    status: GoalStatus
    target_date: date
    progress: int
    milestones: list[MilestoneResponse]
    tags: list[str]
    notes: list[NoteResponse]
    completed_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class GoalListResponse(BaseModel):
    items: list[GoalResponse]
    count: int
    total: int
    page: int
    pages: int


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_goal_service(request: Request) -> GoalService:
    """Build a GoalService over the repository selected at startup."""
    return GoalService(request.app.state.goal_repository)


def _to_response(goal: Goal) -> GoalResponse:
    return GoalResponse.model_validate(goal)


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


@router.get("", response_model=GoalListResponse)
async def list_goals(
    query: Annotated[GoalListQuery, Query()],
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: GoalService = Depends(get_goal_service),
    settings: Settings = Depends(get_settings),
) -> GoalListResponse:
    """List the user's goals, newest first."""
    limit = query.limit or settings.default_page_size
    if limit > settings.max_page_size:
        raise GoalValidationError.single(
            "limit", f"Input should be less than or equal to {settings.max_page_size}"
        )

    result = await service.list_goals(
        current_user.id, query.to_filter(), page=query.page, limit=limit
    )

    log.info(
        "goals.list",
        user_id=str(current_user.id),
        total=result.total,
        page=result.page,
        count=len(result.items),
    )

    return GoalListResponse(
        items=[_to_response(g) for g in result.items],
        count=len(result.items),
        total=result.total,
        page=result.page,
        pages=result.pages,
    )


@router.post("", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
async def create_goal(
    payload: GoalCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: GoalService = Depends(get_goal_service),
) -> GoalResponse:
    """Create a goal. title, category and target_date are required."""
    goal = await service.create_goal(current_user.id, payload)
    log.info("goals.created", user_id=str(current_user.id), goal_id=str(goal.id))
    return _to_response(goal)


@router.get("/stats/overview", response_model=GoalStats)
async def goal_stats(
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: GoalService = Depends(get_goal_service),
) -> GoalStats:
    """Summary statistics over all of the user's goals."""
    return await service.get_stats(current_user.id)


@router.get("/{goal_id}", response_model=GoalResponse)
async def get_goal(
    goal_id: uuid.UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: GoalService = Depends(get_goal_service),
) -> GoalResponse:
    goal = await service.get_goal(goal_id, current_user.id)
    return _to_response(goal)


@router.patch("/{goal_id}", response_model=GoalResponse)
async def update_goal(
    goal_id: uuid.UUID,
    payload: GoalUpdate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: GoalService = Depends(get_goal_service),
) -> GoalResponse:
    """Merge the given fields into the goal.

    Setting status to completed forces progress to 100. Sending a
    milestones list replaces the milestones and re-derives progress.
    """
    goal = await service.update_goal(goal_id, current_user.id, payload)
    log.info(
        "goals.updated",
        user_id=str(current_user.id),
        goal_id=str(goal_id),
        status=goal.status.value,
    )
    return _to_response(goal)


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal(
    goal_id: uuid.UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: GoalService = Depends(get_goal_service),
) -> Response:
    await service.delete_goal(goal_id, current_user.id)
    log.info("goals.deleted", user_id=str(current_user.id), goal_id=str(goal_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Milestones and notes
# ---------------------------------------------------------------------------


@router.post(
    "/{goal_id}/milestones",
    response_model=GoalResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_milestone(
    goal_id: uuid.UUID,
    payload: MilestoneCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: GoalService = Depends(get_goal_service),
) -> GoalResponse:
    """Append a milestone. Returns the whole goal with recomputed progress."""
    goal = await service.add_milestone(goal_id, current_user.id, payload)
    return _to_response(goal)


@router.patch("/{goal_id}/milestones/{milestone_id}", response_model=GoalResponse)
async def update_milestone(
    goal_id: uuid.UUID,
    milestone_id: uuid.UUID,
    payload: MilestoneUpdate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: GoalService = Depends(get_goal_service),
) -> GoalResponse:
    """Edit or toggle a milestone. Returns the whole goal."""
    goal = await service.update_milestone(goal_id, milestone_id, current_user.id, payload)
    return _to_response(goal)


@router.delete("/{goal_id}/milestones/{milestone_id}", response_model=GoalResponse)
async def delete_milestone(
    goal_id: uuid.UUID,
    milestone_id: uuid.UUID,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: GoalService = Depends(get_goal_service),
) -> GoalResponse:
    goal = await service.delete_milestone(goal_id, milestone_id, current_user.id)
    return _to_response(goal)


@router.post(
    "/{goal_id}/notes",
    response_model=GoalResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_note(
    goal_id: uuid.UUID,
    payload: NoteCreate,
    current_user: AuthenticatedUser = Depends(get_current_user),
    service: GoalService = Depends(get_goal_service),
) -> GoalResponse:
    """Append a note ({"content": "..."}). Notes are never edited."""
    goal = await service.add_note(goal_id, current_user.id, payload)
    return _to_response(goal)
