# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
Colorizes an already-serialized JSON line by re-tokenizing it.

This is the compatibility path for output produced by another JSON
serializer. The structural renderer in `py_color_json.render` is cheaper
and should be preferred when the event itself is available.
"""
from enum import Enum
from typing import Iterator, NamedTuple

from py_color_json.colors import DEFAULT_PALETTE, Palette
from py_color_json.levels import Severity

WHITESPACE = " \t\n\r"
NUMBER_CHARS = "0123456789.eE+-"
KEYWORDS = {"true": "boolean", "false": "boolean", "null": "null"}


class TokenType(Enum):
    WHITESPACE = "whitespace"
    BRACE = "brace"
    COLON = "colon"
    COMMA = "comma"
    KEY = "key"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    LEVEL = "level"
    OTHER = "other"


class Token(NamedTuple):
    text: str
    type: TokenType


def _scan_string(text: str, start: int) -> int:
    """Returns the index just past the string literal opening at `start`."""
    i = start + 1
    while i < len(text):
        if text[i] == "\\" and i + 1 < len(text):
            i += 2
            continue
        if text[i] == '"':
            return i + 1
        i += 1
    return i


def _followed_by_colon(text: str, i: int) -> bool:
    while i < len(text) and text[i] in WHITESPACE:
        i += 1
    return i < len(text) and text[i] == ":"


def tokenize(text: str, top_level_only: bool = True) -> Iterator[Token]:
    """
    Splits a JSON line into tokens, classifying quoted strings as keys,
    plain strings or severity values.

    A string is a severity value when it directly follows a `level` key and
    holds one of DEBUG, INFO, WARN or ERROR. With `top_level_only` the `level`
    key only counts at the outermost object; without it any key named `level`
    at any depth arms the match.
    """
    depth = 0
    level_key_seen = False
    i = 0
    while i < len(text):
        c = text[i]
        if c in WHITESPACE:
            start = i
            while i < len(text) and text[i] in WHITESPACE:
                i += 1
            yield Token(text[start:i], TokenType.WHITESPACE)
        elif c in "{[":
            depth += 1
            i += 1
            yield Token(c, TokenType.BRACE)
        elif c in "}]":
            depth -= 1
            i += 1
            yield Token(c, TokenType.BRACE)
        elif c == ":":
            i += 1
            yield Token(c, TokenType.COLON)
        elif c == ",":
            i += 1
            yield Token(c, TokenType.COMMA)
        elif c == '"':
            start = i
            i = _scan_string(text, i)
            literal = text[start:i]
            inner = literal[1:-1]
            if _followed_by_colon(text, i):
                level_key_seen = inner == "level" and (depth == 1 or not top_level_only)
                yield Token(literal, TokenType.KEY)
            elif level_key_seen and inner in Severity.__members__:
                level_key_seen = False
                yield Token(literal, TokenType.LEVEL)
            else:
                level_key_seen = False
                yield Token(literal, TokenType.STRING)
        elif c.isdigit() or c == "-":
            start = i
            while i < len(text) and text[i] in NUMBER_CHARS:
                i += 1
            yield Token(text[start:i], TokenType.NUMBER)
        else:
            for word, category in KEYWORDS.items():
                if text.startswith(word, i):
                    i += len(word)
                    yield Token(word, TokenType(category))
                    break
            else:
                i += 1
                yield Token(c, TokenType.OTHER)


def colorize_json(text: str, palette: Palette = DEFAULT_PALETTE, top_level_only: bool = True) -> str:
    """
    Injects palette colors around every token of a JSON line.
    The structure and whitespace of `text` are left untouched.
    """
    colors = {
        TokenType.BRACE: palette.brace,
        TokenType.KEY: palette.key,
        TokenType.STRING: palette.string,
        TokenType.NUMBER: palette.number,
        TokenType.BOOLEAN: palette.boolean,
        TokenType.NULL: palette.null,
    }
    parts = []
    for token in tokenize(text, top_level_only=top_level_only):
        if token.type is TokenType.LEVEL:
            color = palette.level(Severity[token.text[1:-1]])
        else:
            color = colors.get(token.type, "")
        parts.append(Palette.wrap(color, token.text))
    return "".join(parts)
