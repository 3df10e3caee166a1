import logging
from enum import IntEnum

from py_color_json.colors import ConfigurationError


class Severity(IntEnum):
    """
    Log severities, ordered DEBUG < INFO < WARN < ERROR.
    Values match the standard library's numeric logging levels.
    """

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR

    @classmethod
    def from_logging_level(cls, levelno: int) -> "Severity":
        """
        Maps any stdlib numeric level down to the closest severity.
        Levels above ERROR (e.g. CRITICAL) map to ERROR.
        """
        if levelno >= cls.ERROR:
            return cls.ERROR
        if levelno >= cls.WARN:
            return cls.WARN
        if levelno >= cls.INFO:
            return cls.INFO
        return cls.DEBUG

    @classmethod
    def parse(cls, value: "str | int | Severity") -> "Severity":
        """
        Accepts a Severity, a stdlib numeric level, or a level name
        (DEBUG, INFO, WARN, WARNING, ERROR, CRITICAL; case-insensitive).
        Raises:
            ConfigurationError: If a name is not recognized.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls.from_logging_level(value)
        name = value.strip().upper()
        mapping = {
            "DEBUG": cls.DEBUG,
            "INFO": cls.INFO,
            "WARN": cls.WARN,
            "WARNING": cls.WARN,
            "ERROR": cls.ERROR,
            "CRITICAL": cls.ERROR,
        }
        if name not in mapping:
            raise ConfigurationError(
                f"Unknown log level: '{value}'. "
                "Supported levels are: DEBUG, INFO, WARN, ERROR."
            )
        return mapping[name]


def is_enabled(minimum: "Severity | None", severity: Severity) -> bool:
    """True iff `severity` is at or above `minimum` (INFO when unset)."""
    if minimum is None:
        minimum = Severity.INFO
    return severity >= minimum
