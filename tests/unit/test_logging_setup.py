"""Unit tests for logging configuration."""
from __future__ import annotations

import logging
import re

from vault_ledger.logging_setup import configure_logging


class TestConfigureLogging:
    def test_sets_info_level(self) -> None:
        configure_logging("INFO")
        assert logging.getLogger().level == logging.INFO

    def test_sets_debug_level(self) -> None:
        configure_logging("DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_lowercase_level(self) -> None:
        configure_logging("warning")
        assert logging.getLogger().level == logging.WARNING

    def test_silences_aiohttp(self) -> None:
        configure_logging("DEBUG")
        assert logging.getLogger("aiohttp").level == logging.WARNING

    def test_invalid_level_defaults_to_info(self) -> None:
        configure_logging("NONEXISTENT")
        assert logging.getLogger().level == logging.INFO


class TestLogFormat:
    def test_lines_carry_timestamp_level_and_logger(self) -> None:
        configure_logging("INFO")
        handlers = [h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler]
        assert len(handlers) == 1

        record = logging.LogRecord(
            "vault_ledger.services.ledger", logging.WARNING, __file__, 1,
            "borrow rolled back: %s", ("paused",), None,
        )
        line = handlers[0].format(record)
        assert re.fullmatch(
            r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2},\d{3} WARNING  "
            r"vault_ledger\.services\.ledger: borrow rolled back: paused",
            line,
        )

    def test_reconfigure_replaces_handler(self) -> None:
        configure_logging("INFO")
        configure_logging("DEBUG")
        handlers = [h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler]
        assert len(handlers) == 1
