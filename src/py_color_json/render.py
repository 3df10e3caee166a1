# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
Structural rendering of log events into single-line, colorized JSON.

The renderer colors every token while it walks the event, so it always knows
whether it is writing a key, a severity, or a plain value. Stripping the ANSI
sequences from its output leaves compact JSON in the field order
`time, level, msg, [source|file], <context attrs>, <event attrs>`.
"""
import json
import math
import os
from collections.abc import Mapping
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any, Callable, Optional

from py_color_json.colors import DEFAULT_PALETTE, ConfigurationError, Palette
from py_color_json.context import Context
from py_color_json.records import CYCLE, Attr, GroupValue, LogEvent, SourceLocation, to_attr

# --- Time formats ---
TIME_ONLY = "%H:%M:%S"
DATE_ONLY = "%Y-%m-%d"
DATE_TIME = "%Y-%m-%d %H:%M:%S"
RFC3339 = "rfc3339"
RFC3339_MICRO = "rfc3339micro"

TIME_FORMAT_ALIASES = {
    "time": TIME_ONLY,
    "date": DATE_ONLY,
    "datetime": DATE_TIME,
    "rfc3339": RFC3339,
    "rfc3339micro": RFC3339_MICRO,
}

# (group path, attribute) -> replacement attribute; None or an empty key drops it.
ReplaceAttr = Callable[[tuple[str, ...], Attr], Optional[Attr]]

EMPTY_CONTEXT = Context()

_CONTAINERS = (Mapping, list, tuple, set, frozenset)


class SourceMode(str, Enum):
    OFF = "off"
    FULL = "full"
    SHORT_FILE = "short"
    LONG_FILE = "long"

    @classmethod
    def parse(cls, value: "str | SourceMode") -> "SourceMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown source mode: '{value}'. "
                f"Supported modes are: {', '.join(m.value for m in cls)}."
            ) from None


def resolve_time_format(value: Optional[str]) -> str:
    """Expands a named alias (`time`, `date`, `rfc3339`, ...) to its format."""
    if not value:
        return TIME_ONLY
    return TIME_FORMAT_ALIASES.get(value.strip().lower(), value)


def format_timestamp(ts: datetime, time_format: Optional[str] = None) -> str:
    """
    Formats an event timestamp.
    Args:
        ts: The timestamp to format.
        time_format: A strftime pattern, a named alias, or RFC3339 / RFC3339_MICRO.
            Defaults to TIME_ONLY.
    Returns:
        The formatted timestamp. RFC 3339 output treats a naive timestamp as
        UTC and writes a UTC offset as `Z`.
    """
    time_format = resolve_time_format(time_format)
    if time_format in (RFC3339, RFC3339_MICRO):
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        timespec = "seconds" if time_format == RFC3339 else "microseconds"
        text = ts.isoformat(timespec=timespec)
        if text.endswith("+00:00"):
            text = text[: -len("+00:00")] + "Z"
        return text
    return ts.strftime(time_format)


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def render_value(value: Any, palette: Palette = DEFAULT_PALETTE) -> str:
    """
    Renders one scalar as a colored JSON literal.

    Booleans, null and finite numbers are unquoted. Non-finite floats and every
    type without a JSON literal (dates, enums, arbitrary objects) render as
    quoted strings, so no value is ever unrenderable.
    """
    if value is None:
        return Palette.wrap(palette.null, "null")
    if isinstance(value, bool):
        return Palette.wrap(palette.boolean, "true" if value else "false")
    if isinstance(value, int):
        return Palette.wrap(palette.number, str(int(value)))
    if isinstance(value, float):
        if math.isnan(value):
            return Palette.wrap(palette.string, _quote("NaN"))
        if math.isinf(value):
            return Palette.wrap(palette.string, _quote("+Inf" if value > 0 else "-Inf"))
        return Palette.wrap(palette.number, repr(value))
    if isinstance(value, str):
        return Palette.wrap(palette.string, _quote(value))
    if isinstance(value, (datetime, date, time)):
        return Palette.wrap(palette.string, _quote(value.isoformat()))
    return Palette.wrap(palette.string, _quote(str(value)))


class _LineWriter:
    """
    Accumulates the pieces of one rendered line.

    A separator is owed after every completed field or element and is only
    written when the next one starts, so nothing ever has to be trimmed
    before a closing brace.
    """

    def __init__(self, palette: Palette):
        self.palette = palette
        self._parts: list[str] = []
        self._separator_owed = False

    def _separate(self) -> None:
        if self._separator_owed:
            self._parts.append(",")
            self._separator_owed = False

    def key(self, key: str) -> None:
        self._separate()
        self._parts.append(Palette.wrap(self.palette.key, _quote(key)))
        self._parts.append(":")

    def element(self) -> None:
        self._separate()

    def value(self, rendered: str) -> None:
        self._parts.append(rendered)
        self._separator_owed = True

    def open(self, brace: str = "{") -> None:
        self._parts.append(Palette.wrap(self.palette.brace, brace))
        self._separator_owed = False

    def close(self, brace: str = "}") -> None:
        self._parts.append(Palette.wrap(self.palette.brace, brace))
        self._separator_owed = True

    def getvalue(self) -> str:
        return "".join(self._parts)


def _write_value(
    writer: _LineWriter,
    value: Any,
    groups: tuple[str, ...],
    replace_attr: Optional[ReplaceAttr],
    seen: frozenset[int] = frozenset(),
) -> None:
    # `seen` holds the ids of the containers enclosing `value`.
    if isinstance(value, GroupValue):
        writer.open()
        for child in value.attrs:
            _write_attr(writer, child, groups, replace_attr, seen)
        writer.close()
    elif isinstance(value, _CONTAINERS) and id(value) in seen:
        writer.value(render_value(CYCLE, writer.palette))
    elif isinstance(value, Mapping):
        inner = seen | {id(value)}
        _write_value(writer, to_attr("", value, seen).value, groups, replace_attr, inner)
    elif isinstance(value, (list, tuple, set, frozenset)):
        inner = seen | {id(value)}
        writer.open("[")
        for item in value:
            writer.element()
            _write_value(writer, item, groups, replace_attr, inner)
        writer.close("]")
    else:
        writer.value(render_value(value, writer.palette))


def _write_attr(
    writer: _LineWriter,
    attr: Attr,
    groups: tuple[str, ...],
    replace_attr: Optional[ReplaceAttr],
    seen: frozenset[int] = frozenset(),
) -> None:
    if isinstance(attr.value, (Mapping, Attr)):
        attr = to_attr(attr.key, attr.value, seen)

    if not attr.is_group and replace_attr is not None:
        attr = replace_attr(groups, attr)
        if attr is None or not attr.key:
            return
        if isinstance(attr.value, (Mapping, Attr)):
            attr = to_attr(attr.key, attr.value, seen)

    writer.key(attr.key)
    inner = groups + (attr.key,) if attr.is_group else groups
    _write_value(writer, attr.value, inner, replace_attr, seen)


def _write_source(writer: _LineWriter, source: SourceLocation, mode: SourceMode) -> None:
    palette = writer.palette
    if mode is SourceMode.FULL:
        writer.key("source")
        writer.open()
        writer.key("function")
        writer.value(render_value(source.function, palette))
        writer.key("file")
        writer.value(render_value(source.file, palette))
        writer.key("line")
        writer.value(render_value(source.line, palette))
        writer.close()
    elif mode is SourceMode.SHORT_FILE:
        writer.key("file")
        writer.value(render_value(f"{os.path.basename(source.file)}:{source.line}", palette))
    elif mode is SourceMode.LONG_FILE:
        writer.key("file")
        writer.value(render_value(f"{source.file}:{source.line}", palette))


def render_event(
    event: LogEvent,
    context: Context = EMPTY_CONTEXT,
    *,
    palette: Palette = DEFAULT_PALETTE,
    time_format: Optional[str] = None,
    source_mode: SourceMode = SourceMode.OFF,
    replace_attr: Optional[ReplaceAttr] = None,
) -> str:
    """
    Renders a log event as one newline-terminated line of colorized JSON.
    Args:
        event: The event to render.
        context: Persisted attributes and group path of the emitting handler.
        palette: Colors for each token category.
        time_format: A strftime pattern or a named format such as `date`
            or `rfc3339`. Defaults to TIME_ONLY.
        source_mode: How (and whether) to report the event's source location.
        replace_attr: Optional hook applied to every non-group attribute,
            including persisted ones; `time`, `level` and `msg` are exempt.
    Returns:
        The rendered line.
    """
    writer = _LineWriter(palette)
    writer.open()

    writer.key("time")
    writer.value(Palette.wrap(palette.string, _quote(format_timestamp(event.time, time_format))))
    writer.key("level")
    writer.value(Palette.wrap(palette.level(event.severity), _quote(event.severity.name)))
    writer.key("msg")
    writer.value(render_value(event.message, palette))

    if event.source is not None and source_mode is not SourceMode.OFF:
        _write_source(writer, event.source, source_mode)

    # Persisted attributes always sit at the top level, ahead of any groups.
    for attr in context.attrs:
        _write_attr(writer, attr, (), replace_attr)

    for name in context.groups:
        writer.key(name)
        writer.open()
    for attr in event.attrs:
        _write_attr(writer, attr, context.groups, replace_attr)
    for _ in context.groups:
        writer.close()

    writer.close()
    return writer.getvalue() + "\n"
