"""Tests for cigate.logging (CigateLogging, level/format from config)."""

import logging

import pytest

from cigate.config import LoggingConfig
from cigate.logging import DEFAULT_FORMAT, LEVELS, QUIET_LOGGERS, CigateLogging, _resolve_level


def test_default_format_names_thread() -> None:
    """Deliveries run on server threads, so the thread name is logged."""
    assert "%(threadName)s" in DEFAULT_FORMAT
    assert "%(message)s" in DEFAULT_FORMAT


class TestResolveLevel:
    """_resolve_level maps level names to logging constants."""

    def test_case_and_whitespace_normalized(self) -> None:
        assert _resolve_level("debug") == logging.DEBUG
        assert _resolve_level("  WARNING ") == logging.WARNING

    def test_unknown_level_returns_info(self) -> None:
        assert _resolve_level("TRACE") == logging.INFO
        assert _resolve_level("") == logging.INFO


class TestCigateLogging:
    """CigateLogging applies LoggingConfig to the root logger."""

    @pytest.mark.parametrize("level_name", sorted(LEVELS))
    def test_setup_sets_root_level_from_config(self, level_name: str) -> None:
        CigateLogging(LoggingConfig(level=level_name, format="%(message)s")).setup()
        assert logging.root.level == LEVELS[level_name]

    def test_setup_applies_format(self) -> None:
        custom = "%(levelname)s || %(message)s"
        CigateLogging(LoggingConfig(level="INFO", format=custom)).setup()
        assert logging.root.handlers
        assert logging.root.handlers[0].formatter._fmt == custom

    def test_empty_format_uses_default(self) -> None:
        CigateLogging(LoggingConfig(level="INFO", format="")).setup()
        assert logging.root.handlers[0].formatter._fmt == DEFAULT_FORMAT

    def test_http_clients_not_chatty_at_debug(self) -> None:
        """Connection pool logging stays at INFO when the app runs at DEBUG."""
        CigateLogging(LoggingConfig(level="DEBUG", format="%(message)s")).setup()
        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.INFO

    def test_http_clients_follow_higher_level(self) -> None:
        CigateLogging(LoggingConfig(level="ERROR", format="%(message)s")).setup()
        assert logging.getLogger("urllib3").level == logging.ERROR
