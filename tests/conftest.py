import logging
import re
from datetime import datetime, timezone
from typing import Callable, Iterator

import pytest

from py_color_json.levels import Severity
from py_color_json.records import Attr, LogEvent

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]+m")

TEST_TIME = datetime(2024, 5, 28, 12, 34, 56, tzinfo=timezone.utc)


def strip_colors(text: str) -> str:
    return ANSI_ESCAPE.sub("", text)


@pytest.fixture
def strip() -> Callable[[str], str]:
    """Removes ANSI color sequences from rendered output."""
    return strip_colors


@pytest.fixture
def make_event() -> Callable[..., LogEvent]:
    """
    A factory for LogEvents stamped with a fixed test time.
    Keyword fields become attributes in the order given.
    """

    def _make(message: str = "hello", severity: Severity = Severity.INFO, *attrs: Attr, source=None, **fields) -> LogEvent:
        all_attrs = tuple(attrs) + tuple(Attr(k, v) for k, v in fields.items())
        return LogEvent(time=TEST_TIME, severity=severity, message=message, attrs=all_attrs, source=source)

    return _make


@pytest.fixture
def isolated_root_logger() -> Iterator[logging.Logger]:
    """Restores the root logger's handlers and level after the test."""
    root_logger = logging.getLogger()
    saved_handlers = root_logger.handlers[:]
    saved_level = root_logger.level
    yield root_logger
    root_logger.handlers[:] = saved_handlers
    root_logger.setLevel(saved_level)


@pytest.fixture
def clean_env(monkeypatch):
    """Removes every logging environment variable the package reads."""
    for name in ("LOG_FORMAT", "LOG_LEVEL", "LOG_TIME_FORMAT", "LOG_PALETTE", "LOG_SOURCE"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
