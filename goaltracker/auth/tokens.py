"""Bearer token validation.

Tokens are HS256 JWTs signed with JWT_SECRET.

Required JWT claims:
  - sub: string UUID - the goal owner id
  - exp: int - expiration timestamp
  - aud: string|list - must include JWT_AUDIENCE

Optional claims:
  - email: string
  - name: string
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

import jwt
import structlog
from jwt.exceptions import InvalidTokenError

from goaltracker.config import Settings

log = structlog.get_logger(__name__)


class TokenValidationError(Exception):
    """Raised when a JWT cannot be validated."""


def validate_token(token: str, settings: Settings) -> dict[str, Any]:
    """Validate a JWT and return its claims.

    Raises TokenValidationError if the token is invalid, expired, has the
    wrong audience or does not name a UUID subject.
    """
    try:
        claims: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret.get_secret_value(),
            algorithms=["HS256"],
            audience=settings.jwt_audience,
            options={"verify_exp": True, "verify_aud": True, "require": ["sub", "exp"]},
        )
    except InvalidTokenError as exc:
        raise TokenValidationError(f"Token validation failed: {exc}") from exc

    owner_id(claims)
    return claims


def owner_id(claims: dict[str, Any]) -> uuid.UUID:
    """Return the owner id carried in the ``sub`` claim."""
    try:
        return uuid.UUID(str(claims.get("sub", "")))
    except ValueError as exc:
        raise TokenValidationError("JWT 'sub' claim is not a UUID") from exc


def create_dev_token(
    *,
    sub: str | uuid.UUID,
    secret: str,
    audience: str = "goaltracker-api",
    email: str = "",
    expires_in: int = 3600,
) -> str:
    """Create a signed JWT for local development and tests.

    Never call this in production code.
    """
    now = int(datetime.now(UTC).timestamp())
    payload = {
        "sub": str(sub),
        "email": email,
        "aud": audience,
        "iat": now,
        "exp": now + expires_in,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, secret, algorithm="HS256")
