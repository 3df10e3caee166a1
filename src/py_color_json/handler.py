# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
import logging
import sys
import threading
from datetime import datetime, timezone
from typing import IO, Any, Optional

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from py_color_json.colors import DEFAULT_PALETTE, Palette
from py_color_json.context import Context
from py_color_json.levels import Severity, is_enabled
from py_color_json.logging import ColorJsonFormatter
from py_color_json.records import Attr, LogEvent, as_attrs
from py_color_json.render import ReplaceAttr, SourceMode


class ColorJsonHandler(logging.Handler):
    """
    A logging handler that writes each event as one line of colorized JSON.

    Handlers are cheap to derive: `with_fields` and `with_group` return new
    handlers that share this one's stream, formatter and write lock but carry
    their own immutable Context, so many derived handlers can log concurrently
    without seeing each other's fields or groups.
    """

    def __init__(
        self,
        stream: Optional[IO[str]] = None,
        *,
        level: "Severity | int | str" = Severity.INFO,
        time_format: Optional[str] = None,
        palette: Palette = DEFAULT_PALETTE,
        source: "SourceMode | str" = SourceMode.OFF,
        replace_attr: Optional[ReplaceAttr] = None,
    ):
        """
        Initializes the handler.
        Args:
            stream: Where rendered lines are written. Defaults to sys.stderr.
            level: Minimum severity to emit. Defaults to INFO.
            time_format: A strftime pattern or named format (see render.py).
            palette: Colors for each token category.
            source: Source location mode (off, full, short or long).
            replace_attr: Optional `(groups, attr) -> attr` rewrite hook.
        """
        super().__init__()
        self.stream = stream if stream is not None else sys.stderr
        self.setLevel(level)
        self.formatter = ColorJsonFormatter(
            palette=palette,
            time_format=time_format,
            source=source,
            replace_attr=replace_attr,
        )
        self.context = Context()
        self._write_lock = threading.RLock()

    @property
    def palette(self) -> Palette:
        return self.formatter.palette

    def setLevel(self, level: "Severity | int | str") -> None:
        self.minimum = Severity.parse(level)
        super().setLevel(int(self.minimum))

    def setFormatter(self, fmt: Optional[logging.Formatter]) -> None:
        if not isinstance(fmt, ColorJsonFormatter):
            raise TypeError(
                f"ColorJsonHandler requires a ColorJsonFormatter, got {type(fmt).__name__}."
            )
        super().setFormatter(fmt)

    def set_colors(self, **colors: str) -> None:
        """
        Overrides individual palette colors on this handler only,
        e.g. `handler.set_colors(brace=GRAY)`.
        """
        self.formatter = self.formatter.with_palette(self.formatter.palette.replace(**colors))

    def is_enabled(self, severity: "Severity | int | str") -> bool:
        return is_enabled(self.minimum, Severity.parse(severity))

    def _derive(self, context: Context) -> Self:
        child = self.__class__.__new__(self.__class__)
        logging.Handler.__init__(child, int(self.minimum))
        child.minimum = self.minimum
        child.stream = self.stream
        child.formatter = self.formatter
        child.filters = list(self.filters)
        child.context = context
        child._write_lock = self._write_lock
        return child

    def with_fields(self, *attrs: Any, **fields: Any) -> Self:
        """
        Returns a new handler whose lines carry these attributes at the top level.
        Accepts `Attr` instances, `(key, value)` pairs and keyword fields.
        """
        return self._derive(self.context.with_fields(as_attrs(attrs, fields)))

    def with_group(self, name: str) -> Self:
        """Returns a new handler that nests event attributes under `name`."""
        if not name:
            return self
        return self._derive(self.context.with_group(name))

    def handle_event(self, event: LogEvent) -> None:
        """
        Renders an event and writes it as one line.
        Raises:
            Any error raised by the stream's write or flush, unchanged.
        """
        line = self.formatter.render(event, self.context)
        with self._write_lock:
            self.stream.write(line)
            if hasattr(self.stream, "flush"):
                self.stream.flush()

    def log(self, severity: "Severity | int | str", message: str, *attrs: Attr, **fields: Any) -> None:
        """
        Builds and handles an event directly, without going through a Logger.
        Events below the minimum severity are dropped before they are built.
        """
        severity = Severity.parse(severity)
        if not self.is_enabled(severity):
            return
        self.handle_event(
            LogEvent(
                time=datetime.now(timezone.utc),
                severity=severity,
                message=message,
                attrs=as_attrs(attrs, fields),
            )
        )

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.handle_event(LogEvent.from_log_record(record))
        except RecursionError:
            raise
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        with self._write_lock:
            if self.stream and hasattr(self.stream, "flush"):
                self.stream.flush()
