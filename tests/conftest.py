"""Shared test fixtures for the statusrelay test suite."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from statusrelay.relay.cache import ResponseCache
from statusrelay.upstream.base import StatusSource


class FakeClock:
    """Manually advanced monotonic clock for freshness tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Status document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def status_document() -> dict[str, Any]:
    """A well-formed upstream status document."""
    return {
        "players": 5,
        "soft_max_players": 20,
        "name": "Test",
        "round_start_time": "2024-01-01T00:00:00Z",
        "run_level": 2,
    }


@pytest.fixture
def expected_payload() -> str:
    """The wire payload for ``status_document``."""
    return "5\x0720\x07Test\x072024-01-01T00:00:00Z\x072"


# ---------------------------------------------------------------------------
# Relay fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> ResponseCache:
    """A response cache driven by the fake clock."""
    return ResponseCache(freshness_window=0.4, clock=clock)


@pytest.fixture
def mock_source(status_document: dict[str, Any]) -> AsyncMock:
    """A StatusSource double that always returns ``status_document``."""
    source = AsyncMock(spec=StatusSource)
    source.fetch.return_value = status_document
    return source
