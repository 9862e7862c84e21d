"""Tests for structlog setup."""

import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from stellar_fees.logging import get_logger, setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """Drop the handler bound to the captured stderr after each test."""
    yield
    logging.getLogger().handlers.clear()
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_json_format_renders_one_object_per_event(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        setup_logging("INFO", log_format="json")
        structlog.contextvars.bind_contextvars(db_path="fees.db")

        get_logger("stellar_fees.test").info("fee_db_ready", fee_snapshots=3)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "fee_db_ready"
        assert event["fee_snapshots"] == 3
        assert event["db_path"] == "fees.db"
        assert event["level"] == "info"
        assert event["logger"] == "stellar_fees.test"
        assert event["timestamp"].endswith("Z")

    def test_level_filters_events(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging("WARNING", log_format="json")

        get_logger("stellar_fees.test").info("hidden")
        get_logger("stellar_fees.test").warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_aiosqlite_debug_silenced(self) -> None:
        setup_logging("DEBUG")
        assert logging.getLogger("aiosqlite").getEffectiveLevel() == logging.WARNING

    def test_repeated_setup_keeps_single_handler(self) -> None:
        setup_logging("INFO")
        setup_logging("INFO", log_format="json")
        assert len(logging.getLogger().handlers) == 1
