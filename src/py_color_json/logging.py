# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
import copy
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from pythonjsonlogger.json import JsonFormatter

from py_color_json.colorizer import colorize_json
from py_color_json.colors import DEFAULT_PALETTE, Palette
from py_color_json.context import Context
from py_color_json.levels import Severity
from py_color_json.records import LogEvent
from py_color_json.render import (
    EMPTY_CONTEXT,
    ReplaceAttr,
    SourceMode,
    format_timestamp,
    render_event,
    resolve_time_format,
)


class ColorJsonFormatter(logging.Formatter):
    """
    A logging formatter that renders log records as single-line,
    syntax-highlighted JSON.
    Values are colored while the record is walked, so no second parse of
    the output is needed.
    """

    def __init__(
        self,
        palette: Palette = DEFAULT_PALETTE,
        time_format: Optional[str] = None,
        source: "SourceMode | str" = SourceMode.OFF,
        replace_attr: Optional[ReplaceAttr] = None,
    ):
        """
        Args:
            palette: Colors for each token category.
            time_format: A strftime pattern or a named format such as
                `rfc3339`. Defaults to a time-only format.
            source: Source location mode (off, full, short or long).
            replace_attr: Optional hook to rewrite or drop attributes.
        """
        super().__init__()
        self.palette = palette
        self.time_format = resolve_time_format(time_format)
        self.source = SourceMode.parse(source)
        self.replace_attr = replace_attr

    def with_palette(self, palette: Palette) -> "ColorJsonFormatter":
        """Returns a copy of this formatter that uses `palette`."""
        clone = copy.copy(self)
        clone.palette = palette
        return clone

    def render(self, event: LogEvent, context: Context = EMPTY_CONTEXT) -> str:
        """Renders an event, newline included."""
        return render_event(
            event,
            context,
            palette=self.palette,
            time_format=self.time_format,
            source_mode=self.source,
            replace_attr=self.replace_attr,
        )

    def format(self, record: logging.LogRecord) -> str:
        # StreamHandler adds its own terminator.
        return self.render(LogEvent.from_log_record(record)).rstrip("\n")


class ColorizingJsonFormatter(JsonFormatter):
    """
    python-json-logger's JsonFormatter with ANSI colors injected afterwards.

    Use this when the plain JSON must come from python-json-logger itself
    (its field handling, escaping and encoders). Fields are renamed to
    `time`, `level` and `msg`, and levels use the canonical severity names.
    """

    DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(message)s"
    DEFAULT_RENAMES = {"asctime": "time", "levelname": "level", "message": "msg"}

    def __init__(
        self,
        fmt: Optional[str] = DEFAULT_FORMAT,
        datefmt: Optional[str] = None,
        *,
        palette: Palette = DEFAULT_PALETTE,
        top_level_only: bool = True,
        rename_fields: Optional[dict[str, str]] = None,
        **kwargs: Any,
    ):
        if rename_fields is None:
            rename_fields = dict(self.DEFAULT_RENAMES)
        super().__init__(fmt, datefmt, rename_fields=rename_fields, **kwargs)
        self.palette = palette
        self.top_level_only = top_level_only

    def add_fields(self, log_data: dict[str, Any], record: logging.LogRecord, message_dict: dict[str, Any]) -> None:
        super().add_fields(log_data, record, message_dict)
        level_key = self.rename_fields.get("levelname", "levelname")
        if level_key in log_data:
            log_data[level_key] = Severity.from_logging_level(record.levelno).name

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        # Same named formats as the structural renderer, always in UTC.
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return format_timestamp(ts, resolve_time_format(datefmt))

    def format(self, record: logging.LogRecord) -> str:
        return colorize_json(super().format(record), self.palette, top_level_only=self.top_level_only)
