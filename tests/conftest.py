"""
Pytest configuration and fixtures for site cache tests.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from sitecache.backends.memory import MemoryBackend
from sitecache.backends.persistent import PersistentBackend
from sitecache.config import CacheSettings, clear_settings_cache
from sitecache.storage import MemoryStorage

START_TIME = 1_700_000_000.0


class FakeClock:
    """Controllable time source."""

    def __init__(self, now: float = START_TIME) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class UnavailableStorage(MemoryStorage):
    """Medium whose requirements check always fails."""

    def is_available(self) -> bool:
        return False


class _RecordCollector(logging.Handler):
    def __init__(self) -> None:
        super().__init__(logging.DEBUG)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mock_env_vars() -> Generator[dict[str, str], None, None]:
    """Provide mock environment variables for testing."""
    env_vars = {
        "SITE_ID": "3",
        "NETWORK_ID": "2",
        "IS_MULTISITE": "true",
        "NO_IMPLEMENTATION_SET": "Cache unavailable.",
        "STORAGE_NAMESPACE": "testCache",
        "LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture
def settings(temp_dir: Path) -> CacheSettings:
    """Single-site settings that ignore the environment's .env file."""
    return CacheSettings(
        _env_file=None,
        SITE_ID=1,
        NETWORK_ID=1,
        IS_MULTISITE=False,
        STORAGE_PATH=temp_dir / "cache" / "sitecache.db",
    )


@pytest.fixture
def multisite_settings(temp_dir: Path) -> CacheSettings:
    """Multisite settings that ignore the environment's .env file."""
    return CacheSettings(
        _env_file=None,
        SITE_ID=1,
        NETWORK_ID=1,
        IS_MULTISITE=True,
        STORAGE_PATH=temp_dir / "cache" / "sitecache.db",
    )


@pytest.fixture
def medium() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def memory_backend(clock: FakeClock) -> MemoryBackend:
    return MemoryBackend(clock=clock)


@pytest.fixture
def persistent_backend(medium: MemoryStorage, clock: FakeClock) -> PersistentBackend:
    return PersistentBackend(medium, namespace="siteCache", clock=clock)


@pytest.fixture(params=["memory", "persistent"])
def backend(
    request: pytest.FixtureRequest,
    memory_backend: MemoryBackend,
    persistent_backend: PersistentBackend,
) -> MemoryBackend | PersistentBackend:
    """Each shipped backend in turn."""
    if request.param == "memory":
        return memory_backend
    return persistent_backend


@pytest.fixture
def cache_log() -> Generator[list[logging.LogRecord], None, None]:
    """Collect records emitted under the sitecache logger."""
    handler = _RecordCollector()
    logger = logging.getLogger("sitecache")
    old_level = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    yield handler.records
    logger.removeHandler(handler)
    logger.setLevel(old_level)


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
