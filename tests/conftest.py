"""
Pytest fixtures for the pricing engine test suite.

Provides:
- Structured logging configuration and log capture
- Deterministic clock
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO

import pytest

from pricing_kernel.domain.clock import DeterministicClock
from pricing_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

FIXED_NOW = datetime(2026, 3, 15, 9, 30, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture pricing_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            match_rules(...)
            logs = captured_logs()
            assert any(r["message"] == "rule_matched" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("pricing_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# Clock fixtures


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock pinned to FIXED_NOW."""
    return DeterministicClock(FIXED_NOW)
