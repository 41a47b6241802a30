"""HTTP middleware: request ids and security headers.

- RequestIdMiddleware tags every request with an id, binds it to the
  structlog context and echoes it in the X-Request-ID response header.
  A well-formed id sent by the client is reused so calls can be traced
  across services.
- SecurityHeadersMiddleware adds the headers an API-only service should
  always send.
"""

from __future__ import annotations

import re
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

REQUEST_ID_HEADER = "X-Request-ID"

_CLIENT_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app: ASGIApp, *, is_production: bool = False) -> None:
        super().__init__(app)
        self._is_production = is_production

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Goal data is per-user; never let shared caches keep it
        response.headers["Cache-Control"] = "no-store"

        if self._is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Add a request id to every request for log correlation.

    The request id is:
    - Taken from the incoming X-Request-ID header when it is well formed,
      otherwise generated as a UUID4
    - Stored in request.state.request_id
    - Included in the X-Request-ID response header
    - Bound to the structlog context for automatic log inclusion
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        incoming = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = incoming if _CLIENT_REQUEST_ID.match(incoming) else str(uuid.uuid4())

        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            # Avoid leaking request_id to subsequent requests
            structlog.contextvars.clear_contextvars()
