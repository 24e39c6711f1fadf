# src/json_formatter/domain/services/json_parser.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Strict JSON parser adapter.

Purpose:
    Wrap strict JSON parsing into a success/failure value so callers never
    see an exception cross the boundary.

Layer:
    domain/services

Notes:
    - Python's :mod:`json` accepts ``NaN``/``Infinity``/``-Infinity``; those
      literals are not JSON and are rejected here.
    - No partial recovery: one syntax error anywhere fails the whole parse.
    - Values nested deeper than :data:`MAX_NESTING_DEPTH` fail too, so every
      successful result can be rendered recursively.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Final, NoReturn

from json_formatter.types import JsonValue

__all__ = ["MAX_NESTING_DEPTH", "ParseFailed", "ParseOk", "ParseResult", "parse"]

# Arrays and objects, counted from the outermost one.
MAX_NESTING_DEPTH: Final[int] = 128


@dataclass(frozen=True, slots=True)
class ParseOk:
    """Successful parse.

    Attributes:
        value: The parsed JSON value.
    """

    value: JsonValue

    @property
    def ok(self) -> bool:
        """Always True."""
        return True


@dataclass(frozen=True, slots=True)
class ParseFailed:
    """Failed parse.

    Attributes:
        reason: Decoder message, for diagnostics only.
    """

    reason: str = ""

    @property
    def ok(self) -> bool:
        """Always False."""
        return False


type ParseResult = ParseOk | ParseFailed


def _reject_constant(name: str) -> NoReturn:
    raise ValueError(f"Non-standard JSON constant {name!r}")


def _exceeds_depth(value: JsonValue, limit: int) -> bool:
    stack: list[tuple[JsonValue, int]] = [(value, 0)]
    while stack:
        item, depth = stack.pop()
        if isinstance(item, dict):
            children = item.values()
        elif isinstance(item, list):
            children = item
        else:
            continue
        if depth >= limit:
            return True
        stack.extend((child, depth + 1) for child in children)
    return False


def parse(text: str, *, max_depth: int = MAX_NESTING_DEPTH) -> ParseResult:
    """Parse ``text`` as strict JSON.

    Args:
        text: Raw JSON text.
        max_depth: Deepest accepted nesting of arrays and objects.

    Returns:
        :class:`ParseOk` with the value, or :class:`ParseFailed`.
    """
    try:
        value = json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        return ParseFailed(reason=str(exc))
    if _exceeds_depth(value, max_depth):
        return ParseFailed(reason=f"Nesting deeper than {max_depth} levels")
    return ParseOk(value)
