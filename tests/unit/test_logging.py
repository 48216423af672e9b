"""Tests for the logging configuration module.

configure_logging() keeps module-global state (the _logging_configured
flag and the handler on the package logger), so an autouse fixture
resets both, together with the third-party logger levels, around every
test.
"""

import io
import logging
import sys

import pytest
from rich.logging import RichHandler

import court_watch.core.logging as log_module
from court_watch.core.logging import (
    LOGGER_NAME,
    THIRD_PARTY_LEVELS,
    _get_log_level,
    configure_logging,
    get_logger,
    suppress_third_party_loggers,
)


class _Terminal(io.StringIO):
    """A stderr stand-in that claims to be a terminal."""

    def isatty(self):
        return True


@pytest.fixture(autouse=True)
def reset_logging_state():
    logger = logging.getLogger(LOGGER_NAME)
    saved_levels = {name: logging.getLogger(name).level for name in THIRD_PARTY_LEVELS}
    log_module._logging_configured = False
    logger.handlers.clear()
    yield
    log_module._logging_configured = False
    logger.handlers.clear()
    for name, level in saved_levels.items():
        logging.getLogger(name).setLevel(level)


def _handler() -> logging.Handler:
    handlers = logging.getLogger(LOGGER_NAME).handlers
    assert len(handlers) == 1
    return handlers[0]


class TestGetLogLevel:
    def test_default_is_info(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        assert _get_log_level() == logging.INFO

    def test_reads_lowercase_name(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert _get_log_level() == logging.DEBUG

    def test_unknown_name_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")
        assert _get_log_level() == logging.INFO


# -----------------------------------------------------------------------
# Handler selection
# -----------------------------------------------------------------------


class TestHandlerSelection:
    """Rich output on a terminal, timestamped lines everywhere else."""

    def test_rich_on_terminal_with_markup_off(self, monkeypatch):
        monkeypatch.setattr(sys, "stderr", _Terminal())
        configure_logging(level=logging.INFO)
        handler = _handler()
        assert isinstance(handler, RichHandler)
        assert handler.markup is False

    def test_plain_when_stderr_redirected(self, monkeypatch):
        monkeypatch.setattr(sys, "stderr", io.StringIO())
        configure_logging(level=logging.INFO)
        assert type(_handler()) is logging.StreamHandler

    def test_plain_when_rich_disabled(self, monkeypatch):
        monkeypatch.setattr(sys, "stderr", _Terminal())
        configure_logging(level=logging.INFO, use_rich=False)
        assert type(_handler()) is logging.StreamHandler

    def test_plain_line_keeps_brackets(self, capsys):
        configure_logging(level=logging.INFO, use_rich=False)
        get_logger("pipeline.orchestrator").info(
            "Search for %r returned %d filings", "Horvat [Zagreb]", 2
        )
        line = capsys.readouterr().err.strip()
        assert "| INFO     | court_watch.pipeline.orchestrator |" in line
        assert line.endswith("Search for 'Horvat [Zagreb]' returned 2 filings")


# -----------------------------------------------------------------------
# Levels and reconfiguration
# -----------------------------------------------------------------------


class TestConfigureLogging:
    def test_no_propagation_to_root(self):
        configure_logging(level=logging.INFO, use_rich=False)
        assert logging.getLogger(LOGGER_NAME).propagate is False

    def test_explicit_level_after_auto_configuration(self):
        """--verbose runs after modules already called get_logger()."""
        get_logger("cli.main")
        configure_logging(level=logging.DEBUG)
        assert logging.getLogger(LOGGER_NAME).level == logging.DEBUG
        assert _handler().level == logging.DEBUG

    def test_second_call_without_level_changes_nothing(self):
        configure_logging(level=logging.WARNING, use_rich=False)
        configure_logging()
        assert logging.getLogger(LOGGER_NAME).level == logging.WARNING
        assert _handler().level == logging.WARNING


class TestGetLogger:
    def test_prefixes_bare_name(self):
        assert get_logger("scheduler").name == f"{LOGGER_NAME}.scheduler"

    def test_module_name_not_double_prefixed(self):
        assert get_logger("court_watch.pipeline.fetch").name == "court_watch.pipeline.fetch"

    def test_first_call_configures(self):
        assert log_module._logging_configured is False
        get_logger("monitor.detector")
        assert log_module._logging_configured is True


class TestSuppressThirdParty:
    @pytest.mark.parametrize("name", ["httpx", "httpcore", "anthropic", "uvicorn.access"])
    def test_held_at_warning(self, name):
        suppress_third_party_loggers()
        logger = logging.getLogger(name)
        assert logger.level == logging.WARNING
        assert not logger.isEnabledFor(logging.INFO)

    def test_pymupdf_warnings_hidden(self):
        suppress_third_party_loggers()
        fitz_logger = logging.getLogger("fitz")
        assert not fitz_logger.isEnabledFor(logging.WARNING)
        assert fitz_logger.isEnabledFor(logging.ERROR)
