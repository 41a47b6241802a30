"""Health check endpoints.

/health/live   - Liveness check: is the process up?
/health/ready  - Readiness check: can the goal store serve traffic?

These are public endpoints - no auth required.
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict:
    """Liveness check - always returns 200 if the process is running."""
    return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}


@router.get("/ready")
async def readiness(request: Request) -> JSONResponse:
    """Readiness check - reports the active goal store and whether it answers.

    Returns 503 while the store is unreachable so orchestrators stop routing
    traffic here.
    """
    repository = request.app.state.goal_repository
    is_ready = await repository.ping()
    return JSONResponse(
        status_code=200 if is_ready else 503,
        content={
            "status": "ready" if is_ready else "not_ready",
            "goal_store": repository.backend_name,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )
