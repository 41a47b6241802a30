"""FastAPI dependencies for authentication.

get_current_user resolves the bearer token to an AuthenticatedUser. The
owner id of every goal operation comes from here and nowhere else.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from fastapi import Depends, HTTPException, Request, status

from goaltracker.auth.tokens import TokenValidationError, owner_id, validate_token
from goaltracker.config import Settings, get_settings
from goaltracker.telemetry.logging import bind_user_context

log = structlog.get_logger(__name__)


class AuthenticatedUser:
    """Lightweight container passed to route handlers."""

    def __init__(self, user_id: uuid.UUID, claims: dict[str, Any]) -> None:
        self.id = user_id
        self.claims = claims

    @property
    def email(self) -> str:
        return str(self.claims.get("email", ""))


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> AuthenticatedUser:
    """Extract the Bearer token, validate it and return the caller.

    Raises HTTP 401 on any failure.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise _unauthorized("Missing or invalid Authorization header")

    token = auth_header.removeprefix("Bearer ").strip()
    try:
        claims = validate_token(token, settings)
    except TokenValidationError as exc:
        log.info("auth.token_rejected", reason=str(exc))
        raise _unauthorized("Invalid or expired authentication token") from exc

    user = AuthenticatedUser(user_id=owner_id(claims), claims=claims)
    bind_user_context(user.id)
    return user
