"""Telemetry package for observability.

This package contains structured logging with request correlation.
"""

from __future__ import annotations

from goaltracker.telemetry.logging import (
    bind_user_context,
    clear_context,
    configure_logging,
)

__all__ = [
    "bind_user_context",
    "clear_context",
    "configure_logging",
]
