"""
Tests for structured logging.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from sitecache.logging import (
    JSONFormatter,
    get_backend,
    get_logger,
    get_network_id,
    get_site_id,
    log_context,
    setup_logging,
)


class TestLogContext:
    """Test scoped logging context."""

    def test_context_is_scoped(self) -> None:
        assert get_site_id() is None
        with log_context(site_id=2, network_id=1, backend="memory"):
            assert get_site_id() == 2
            assert get_network_id() == 1
            assert get_backend() == "memory"
            with log_context(site_id=5):
                assert get_site_id() == 5
                assert get_backend() == "memory"
            assert get_site_id() == 2
        assert get_site_id() is None
        assert get_backend() is None

    def test_context_attached_to_records(self, cache_log: list) -> None:
        logger = get_logger("tests.logging")
        with log_context(site_id=3, backend="persistent"):
            logger.info("hello", key="k")

        record = cache_log[-1]
        assert record.name == "sitecache.tests.logging"
        assert record.extra == {"site_id": 3, "backend": "persistent", "key": "k"}


class TestJSONFormatter:
    """Test JSON lines output."""

    def test_format(self) -> None:
        record = logging.LogRecord("sitecache.x", logging.INFO, __file__, 1, "msg %s", ("a",), None)
        record.extra = {"group": "g"}

        with log_context(network_id=4):
            payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "msg a"
        assert payload["level"] == "INFO"
        assert payload["network_id"] == 4
        assert payload["extra"] == {"group": "g"}


class TestSetupLogging:
    """Test handler configuration."""

    def test_file_handler(self, temp_dir: Path) -> None:
        log_file = temp_dir / "logs" / "cache.jsonl"
        try:
            setup_logging(log_level="DEBUG", log_file=log_file, console_output=False)
            get_logger("tests.setup").debug("written", group="g")
            for handler in logging.getLogger("sitecache").handlers:
                handler.flush()

            line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
            assert json.loads(line)["message"] == "written"
        finally:
            for handler in logging.getLogger("sitecache").handlers:
                handler.close()
            setup_logging()
