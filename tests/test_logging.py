"""Tests for structured logging configuration."""

from __future__ import annotations

import pytest
import structlog

from goaltracker.telemetry import bind_user_context, clear_context, configure_logging


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()
    clear_context()


def _renderer():
    return structlog.get_config()["processors"][-1]


def test_json_renderer_in_production():
    configure_logging(json_logs=True)
    assert isinstance(_renderer(), structlog.processors.JSONRenderer)


def test_console_renderer_in_development():
    configure_logging(json_logs=False, log_level="DEBUG")
    assert isinstance(_renderer(), structlog.dev.ConsoleRenderer)


def test_context_vars_are_merged_first():
    configure_logging()
    processors = structlog.get_config()["processors"]
    assert processors[0] is structlog.contextvars.merge_contextvars


def test_bind_and_clear_user_context():
    bind_user_context("11111111-1111-4111-8111-111111111111")
    assert structlog.contextvars.get_contextvars()["user_id"] == (
        "11111111-1111-4111-8111-111111111111"
    )
    clear_context()
    assert structlog.contextvars.get_contextvars() == {}
