# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
import argparse
import logging
import os
import sys
import uuid
from importlib import metadata
from typing import Callable, Mapping, Optional, TypedDict, TypeVar

if sys.version_info >= (3, 11):
    from typing import NotRequired
else:
    from typing_extensions import NotRequired

from py_color_json.colors import (
    BG_RED,
    GRAY,
    PALETTES,
    WHITE,
    ConfigurationError,
    Palette,
    get_palette,
    parse_color,
)
from py_color_json.handler import ColorJsonHandler
from py_color_json.levels import Severity
from py_color_json.logging import ColorizingJsonFormatter
from py_color_json.render import SourceMode, resolve_time_format

LOG_FORMATS = ("color", "json", "text")
TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

T = TypeVar("T")


# --- Type Definitions for Logging Configuration ---
class LoggingSettings(TypedDict):
    log_format: str
    level: Severity
    time_format: str
    palette: Palette
    source: SourceMode
    colors: NotRequired[dict[str, str]]


def _from_env(environ: Mapping[str, str], name: str, default: str, parse: Callable[[str], T]) -> T:
    try:
        return parse(environ.get(name, default))
    except ConfigurationError as e:
        raise ConfigurationError(f"Invalid {name}: {e}") from e


def load_settings(environ: Optional[Mapping[str, str]] = None) -> LoggingSettings:
    """
    Reads logging configuration from environment variables.
    Args:
        environ: The variables to read. Defaults to os.environ.
    Returns:
        The parsed settings.
    Raises:
        ConfigurationError: If any variable holds an unsupported value.
    """
    environ = os.environ if environ is None else environ

    log_format = environ.get("LOG_FORMAT", "color").strip().lower()
    if log_format not in LOG_FORMATS:
        raise ConfigurationError(
            f"Unsupported LOG_FORMAT: '{log_format}'. "
            f"Supported formats are: {', '.join(LOG_FORMATS)}."
        )

    return {
        "log_format": log_format,
        "level": _from_env(environ, "LOG_LEVEL", "INFO", Severity.parse),
        "time_format": resolve_time_format(environ.get("LOG_TIME_FORMAT")),
        "palette": _from_env(environ, "LOG_PALETTE", "default", get_palette),
        "source": _from_env(environ, "LOG_SOURCE", "off", SourceMode.parse),
    }


def setup_logging(settings: Optional[LoggingSettings] = None) -> logging.Handler:
    """
    Configures the root logger with a single stdout handler.
    LOG_FORMAT selects colorized structural JSON ("color", the default),
    python-json-logger output colorized afterwards ("json"), or plain
    text ("text").
    """
    if settings is None:
        settings = load_settings()

    # Get the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(int(settings["level"]))

    # Remove any existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if settings["log_format"] == "color":
        handler = ColorJsonHandler(
            sys.stdout,
            level=settings["level"],
            time_format=settings["time_format"],
            palette=settings["palette"],
            source=settings["source"],
        )
        if settings.get("colors"):
            handler.set_colors(**settings["colors"])
    elif settings["log_format"] == "json":
        palette = settings["palette"]
        if settings.get("colors"):
            palette = palette.replace(**settings["colors"])
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            ColorizingJsonFormatter(datefmt=settings["time_format"], palette=palette)
        )
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root_logger.addHandler(handler)
    return handler


def emit_samples(logger: logging.Logger) -> None:
    """Logs one sample at every severity, covering each kind of value."""
    logger.info("Server started", extra={"addr": ":8080", "tls": False})
    logger.debug("Detailed debug message", extra={"value": 123, "ratio": 0.75})
    logger.debug('Testing null & escaped quotes: "', extra={"value": None})
    logger.warning("Something might be wrong", extra={"error": "connection timeout"})
    logger.error(
        "Critical error occurred",
        extra={
            "error": "file not found",
            "details": {
                "path": "/var/log/app.log",
                "code": 404,
                "permissions": False,
            },
        },
    )


def main():
    """Demo CLI: prints sample log lines so a palette can be inspected."""
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logging.error(f"Invalid logging configuration: {e}")
        sys.exit(1)

    parser = argparse.ArgumentParser(
        description="Print sample log lines as syntax-highlighted JSON."
    )
    parser.add_argument(
        "--level",
        type=str,
        default=settings["level"].name,
        help="Minimum severity to print (DEBUG, INFO, WARN, ERROR). "
        "Can also be set via the LOG_LEVEL environment variable.",
    )
    parser.add_argument(
        "--palette",
        type=str,
        choices=sorted(PALETTES),
        default=None,
        help="Color palette preset. Can also be set via LOG_PALETTE.",
    )
    parser.add_argument(
        "--source",
        type=str,
        choices=[m.value for m in SourceMode],
        default=settings["source"].value,
        help="How to report the call site. Can also be set via LOG_SOURCE.",
    )
    parser.add_argument(
        "--time-format",
        type=str,
        default=settings["time_format"],
        help="A strftime pattern or one of: time, date, datetime, rfc3339. "
        "Can also be set via LOG_TIME_FORMAT.",
    )
    parser.add_argument(
        "--mode",
        type=str,
        choices=["structural", "retokenize"],
        default="structural",
        help="'structural' colors values while rendering. 'retokenize' colors "
        "python-json-logger output after the fact.",
    )
    parser.add_argument(
        "--custom-colors",
        action="store_true",
        help="Gray braces and white-on-red errors, on top of the chosen palette.",
    )
    parser.add_argument(
        "--brace-color",
        type=str,
        default=None,
        help="Color for braces and brackets: a name such as gray, or an SGR code such as 90.",
    )

    args = parser.parse_args()

    try:
        settings["level"] = Severity.parse(args.level)
        brace_color = parse_color(args.brace_color) if args.brace_color else None
    except ConfigurationError as e:
        logging.error(f"Invalid logging configuration: {e}")
        sys.exit(1)
    if args.palette:
        settings["palette"] = get_palette(args.palette)
    settings["source"] = SourceMode.parse(args.source)
    settings["time_format"] = resolve_time_format(args.time_format)
    settings["log_format"] = "color" if args.mode == "structural" else "json"
    if args.custom_colors:
        settings["colors"] = {"brace": GRAY, "level_error": BG_RED + WHITE}
    if brace_color:
        settings.setdefault("colors", {})["brace"] = brace_color

    handler = setup_logging(settings)

    try:
        pkg_version = metadata.version("py-color-json")
    except metadata.PackageNotFoundError:
        pkg_version = "0.0.0-dev"

    logger = logging.getLogger("py_color_json.demo")
    logger.info("Demo starting", extra={"version": pkg_version, "mode": args.mode})
    emit_samples(logger)

    if isinstance(handler, ColorJsonHandler):
        request_handler = handler.with_fields(request_id=str(uuid.uuid4())).with_group("http")
        request_handler.log(Severity.INFO, "Request served", method="POST", path="/api/v1/users", status=200)
        request_handler.with_group("timing").log(Severity.DEBUG, "Request timing", total_ms=12.5)


if __name__ == "__main__":
    main()
