"""Tests for RT logging configuration."""

import logging
from collections.abc import Generator

import pytest

from rt.lib.logging_config import ROOT_LOGGER_NAME, get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_rt_logger() -> Generator[None]:
    """Restore the rt logger level and handlers after each test."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    level = logger.level
    handlers = list(logger.handlers)
    yield
    logger.setLevel(level)
    logger.handlers = handlers


class TestGetLogger:
    """Tests for get_logger()."""

    def test_nests_module_names_under_rt(self) -> None:
        """Test that module loggers live under the rt namespace."""
        assert get_logger("rt.state.codec").name == "rt.state.codec"
        assert get_logger("plugins.extra").name == "rt.plugins.extra"
        assert get_logger("rt").name == "rt"


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_default_level_is_warning(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the default level without flags or RT_LOG."""
        monkeypatch.delenv("RT_LOG", raising=False)
        setup_logging()
        assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.WARNING

    def test_verbose_wins_over_quiet(self) -> None:
        """Test that --verbose takes precedence."""
        setup_logging(verbose=True, quiet=True)
        assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.DEBUG

    def test_quiet_only_reports_errors(self) -> None:
        """Test the quiet level."""
        setup_logging(quiet=True)
        assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.ERROR

    def test_level_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that RT_LOG overrides the default level."""
        monkeypatch.setenv("RT_LOG", "info")
        setup_logging()
        assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.INFO

    def test_invalid_environment_level_is_ignored(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that unknown RT_LOG values fall back to WARNING."""
        monkeypatch.setenv("RT_LOG", "chatty")
        setup_logging()
        assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.WARNING

    def test_repeated_setup_does_not_stack_handlers(self) -> None:
        """Test that the RT handler is replaced, not duplicated."""
        setup_logging()
        setup_logging(verbose=True)
        handlers = [
            h
            for h in logging.getLogger(ROOT_LOGGER_NAME).handlers
            if getattr(h, "_rt_handler", False)
        ]
        assert len(handlers) == 1
