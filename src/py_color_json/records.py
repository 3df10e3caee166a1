# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
import logging
import traceback
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from py_color_json.levels import Severity

# Attributes every LogRecord carries; anything else came in through `extra=`.
STANDARD_RECORD_ATTRS = frozenset(
    {
        "args", "asctime", "created", "exc_info", "exc_text", "filename",
        "funcName", "levelname", "levelno", "lineno", "module", "msecs",
        "message", "msg", "name", "pathname", "process", "processName",
        "relativeCreated", "stack_info", "thread", "threadName", "taskName",
    }
)


@dataclass(frozen=True)
class GroupValue:
    """The value of a group attribute: an ordered run of child attributes."""

    attrs: tuple["Attr", ...] = ()


@dataclass(frozen=True)
class Attr:
    key: str
    value: Any

    @property
    def is_group(self) -> bool:
        return isinstance(self.value, GroupValue)


# Rendered in place of a container that already encloses the current value.
CYCLE = "<cycle>"


def group(key: str, *attrs: Attr) -> Attr:
    """Builds a named group attribute holding `attrs` in order."""
    return Attr(key, GroupValue(tuple(attrs)))


def to_attr(key: str, value: Any, seen: frozenset[int] = frozenset()) -> Attr:
    """
    Wraps a value as an attribute under `key`.
    Mappings become nested groups and an `Attr` value becomes a one-field
    group. A mapping that contains itself renders the repeat as CYCLE.
    Args:
        key: The attribute key.
        value: The attribute value.
        seen: ids of the mappings already enclosing `value`.
    """
    if isinstance(value, Attr):
        return Attr(key, GroupValue((value,)))
    if isinstance(value, Mapping):
        if id(value) in seen:
            return Attr(key, CYCLE)
        return Attr(key, GroupValue(attrs_from_mapping(value, seen | {id(value)})))
    return Attr(key, value)


def attrs_from_mapping(values: Mapping[str, Any], seen: frozenset[int] = frozenset()) -> tuple[Attr, ...]:
    return tuple(to_attr(str(k), v, seen) for k, v in values.items())


def as_attrs(attrs: Iterable[Any] = (), fields: Optional[Mapping[str, Any]] = None) -> tuple[Attr, ...]:
    """
    Normalizes positional `Attr`s, `(key, value)` pairs and keyword fields
    into a single tuple of attributes, preserving order.
    """
    result = []
    for item in attrs:
        if isinstance(item, Attr):
            result.append(item)
        else:
            key, value = item
            result.append(to_attr(key, value))
    if fields:
        result.extend(attrs_from_mapping(fields))
    return tuple(result)


@dataclass(frozen=True)
class SourceLocation:
    function: str
    file: str
    line: int


@dataclass(frozen=True)
class LogEvent:
    """
    A single log event, built once by the logging front-end and rendered once.
    """

    time: datetime
    severity: Severity
    message: str
    attrs: tuple[Attr, ...] = ()
    source: Optional[SourceLocation] = None

    @classmethod
    def from_log_record(cls, record: logging.LogRecord) -> "LogEvent":
        """
        Converts a stdlib LogRecord into a LogEvent.
        Args:
            record: The LogRecord instance to convert.
        Returns:
            A LogEvent whose attributes are the record's `extra` fields, in the
            order they were set, followed by exception and stack information
            when present.
        """
        attrs = [
            to_attr(key, value)
            for key, value in record.__dict__.items()
            if key not in STANDARD_RECORD_ATTRS and not key.startswith("_")
        ]

        if record.exc_info:
            attrs.append(Attr("exception", "".join(traceback.format_exception(*record.exc_info)).rstrip()))
        elif record.exc_text:
            attrs.append(Attr("exception", record.exc_text))

        if record.stack_info:
            attrs.append(Attr("stack_info", record.stack_info))

        source = None
        if record.pathname:
            source = SourceLocation(
                function=record.funcName or "",
                file=record.pathname,
                line=record.lineno,
            )

        return cls(
            time=datetime.fromtimestamp(record.created, tz=timezone.utc),
            severity=Severity.from_logging_level(record.levelno),
            message=record.getMessage(),
            attrs=tuple(attrs),
            source=source,
        )
