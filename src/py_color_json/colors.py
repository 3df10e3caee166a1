# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
ANSI terminal colors and the palettes that map JSON token categories to them.
Palettes are immutable; customizing one always produces a new palette.
"""
import re
from dataclasses import dataclass, fields, replace as dataclass_replace


class ConfigurationError(ValueError):
    """Raised when a palette, severity, source mode or log format is not recognized."""

    pass


RESET = "\033[0m"

# --- Foreground ---
BLACK = "\033[30m"
RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
MAGENTA = "\033[35m"
CYAN = "\033[36m"
GRAY = "\033[90m"
WHITE = "\033[37;1m"  # bright white
BRIGHT_BLUE = "\033[34;1m"
BRIGHT_CYAN = "\033[36;1m"

# --- Text attributes ---
BOLD = "\033[1m"
ITALIC = "\033[3m"
UNDERLINE = "\033[4m"

# --- Background ---
BG_RED = "\033[41m"
BG_GREEN = "\033[42m"
BG_YELLOW = "\033[43m"
BG_BLUE = "\033[44m"
BG_MAGENTA = "\033[45m"
BG_CYAN = "\033[46m"
BG_WHITE = "\033[47m"

# --- 256-color mode ---
ORANGE = "\033[38;5;208m"
PURPLE = "\033[38;5;129m"
PINK = "\033[38;5;213m"
TEAL = "\033[38;5;23m"


@dataclass(frozen=True)
class Palette:
    """
    Maps each JSON token category to an ANSI color code.
    An empty string leaves that category uncolored.
    """

    string: str = ""
    number: str = ""
    boolean: str = ""
    null: str = ""
    key: str = ""
    brace: str = ""
    level_debug: str = ""
    level_info: str = ""
    level_warn: str = ""
    level_error: str = ""

    def replace(self, **colors: str) -> "Palette":
        """
        Returns a copy of this palette with the given categories overridden.
        Raises:
            ConfigurationError: If a category name is unknown.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(colors) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown palette categories: {', '.join(unknown)}. "
                f"Valid categories are: {', '.join(sorted(known))}."
            )
        return dataclass_replace(self, **colors)

    def level(self, severity) -> str:
        """Returns the color for a `Severity`."""
        return getattr(self, f"level_{severity.name.lower()}")

    @staticmethod
    def wrap(color: str, text: str) -> str:
        if not color:
            return text
        return f"{color}{text}{RESET}"


DEFAULT_PALETTE = Palette(
    string=GREEN,
    number=YELLOW,
    boolean=MAGENTA,
    null=WHITE,
    key=CYAN,
    brace=BRIGHT_BLUE,
    level_debug=BRIGHT_CYAN,
    level_info=BRIGHT_CYAN,
    level_warn=YELLOW,
    level_error=RED,
)

VIVID_PALETTE = Palette(
    string=PINK,
    number=ORANGE,
    boolean=PURPLE,
    null=GRAY,
    key=BRIGHT_CYAN,
    brace=GRAY,
    level_debug=GRAY,
    level_info=BOLD + GREEN,
    level_warn=BOLD + ORANGE,
    level_error=BG_RED + WHITE,
)

# Strips to plain JSON with no escape sequences at all.
PLAIN_PALETTE = Palette()

PALETTES = {
    "default": DEFAULT_PALETTE,
    "vivid": VIVID_PALETTE,
    "plain": PLAIN_PALETTE,
}


def get_palette(name: str) -> Palette:
    """
    Looks up a preset palette by name (case-insensitive).
    Raises:
        ConfigurationError: If no preset has that name.
    """
    try:
        return PALETTES[name.strip().lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown palette: '{name}'. "
            f"Available palettes are: {', '.join(sorted(PALETTES))}."
        ) from None


COLORS = {
    "black": BLACK,
    "red": RED,
    "green": GREEN,
    "yellow": YELLOW,
    "blue": BLUE,
    "magenta": MAGENTA,
    "cyan": CYAN,
    "gray": GRAY,
    "white": WHITE,
    "bright_blue": BRIGHT_BLUE,
    "bright_cyan": BRIGHT_CYAN,
    "orange": ORANGE,
    "purple": PURPLE,
    "pink": PINK,
    "teal": TEAL,
}

_SGR_PARAMS = re.compile(r"\d+(;\d+)*")


def parse_color(value: str) -> str:
    """
    Resolves a color given by name (`gray`), by SGR parameters (`90`,
    `38;5;208`) or as a full escape sequence.
    Raises:
        ConfigurationError: If the value is none of these.
    """
    value = value.strip()
    if value.startswith("\033["):
        return value
    if _SGR_PARAMS.fullmatch(value):
        return f"\033[{value}m"
    try:
        return COLORS[value.lower().replace("-", "_")]
    except KeyError:
        raise ConfigurationError(
            f"Unknown color: '{value}'. Use an SGR code such as 90 or one of: "
            f"{', '.join(sorted(COLORS))}."
        ) from None
