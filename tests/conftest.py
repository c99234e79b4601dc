"""Pytest configuration and shared fixtures for the cache engine tests.

Ensures ``src/`` is importable without an editable install and provides a
controllable clock so TTL behaviour can be tested without sleeping.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

# Ensure src/ is on sys.path for `import aidj_cache`
SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from aidj_cache.services.cache.cache_service import CacheService, reset_cache_service  # noqa: E402
from aidj_cache.services.cache.cache_store import CacheStore  # noqa: E402


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start_ms: float = 1_700_000_000_000.0) -> None:
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> None:
        """Move the clock forward by ``ms`` milliseconds."""
        self.now_ms += ms


@pytest.fixture
def clock() -> Iterator[FakeClock]:
    """Patch the store clock with a manually advanced one."""
    fake = FakeClock()
    with patch("aidj_cache.services.cache.cache_store._now_ms", fake):
        yield fake


@pytest.fixture
def mock_logger() -> MagicMock:
    """Mock logger for testing."""
    return MagicMock(spec=logging.Logger)


@pytest.fixture
def store() -> Iterator[CacheStore]:
    """Small store without background sweeping."""
    cache = CacheStore(
        {
            "default_ttl_ms": 1000,
            "max_entries": 5,
            "enable_auto_cleanup": False,
            "track_access": True,
        }
    )
    yield cache
    cache.destroy()


@pytest.fixture
def service() -> Iterator[CacheService]:
    """Isolated cache service."""
    cache_service = CacheService()
    yield cache_service
    cache_service.destroy()


@pytest.fixture(autouse=True)
def _reset_global_service() -> Iterator[None]:
    """Drop the process-wide service between tests."""
    yield
    reset_cache_service()
