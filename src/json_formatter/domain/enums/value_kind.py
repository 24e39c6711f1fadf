# src/json_formatter/domain/enums/value_kind.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""JSON value kinds.

Purpose:
    Classify parsed JSON values so the renderer can dispatch on a closed set
    of kinds instead of ad-hoc ``isinstance`` chains.

Layer:
    domain/enums
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ValueKind(str, Enum):
    """Kinds of JSON values produced by a strict parse."""

    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def is_composite(self) -> bool:
        """Return True for arrays and objects."""
        return self in (ValueKind.ARRAY, ValueKind.OBJECT)


def kind_of(value: Any) -> ValueKind | None:
    """Classify a parsed value.

    ``bool`` is checked before numbers because it subclasses ``int``.

    Args:
        value: A value produced by the parser adapter.

    Returns:
        The matching kind, or ``None`` for anything a JSON parse cannot
        produce.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, list):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    return None
