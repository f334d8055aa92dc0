from __future__ import annotations

import logging

import pytest
import structlog

from cmplr.logging import configure_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_level_from_argument(restore_logging: logging.Logger) -> None:
    configure_logging("warning")
    assert restore_logging.level == logging.WARNING
    assert len(restore_logging.handlers) == 1


def test_level_from_environment(restore_logging: logging.Logger, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CMPLR_LOG_LEVEL", "debug")
    configure_logging()
    assert restore_logging.level == logging.DEBUG


def test_unknown_level_falls_back_to_info(restore_logging: logging.Logger) -> None:
    configure_logging("chatty")
    assert restore_logging.level == logging.INFO


def test_events_are_rendered_to_stderr(restore_logging: logging.Logger, capsys) -> None:
    configure_logging("info")
    structlog.get_logger("cmplr.test").warning("package.json not found, skipping exports update")
    assert "package.json not found" in capsys.readouterr().err
