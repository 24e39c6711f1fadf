# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Project-wide JSON typing helpers.

These aliases model the values produced by a strict JSON parse and consumed
by the renderer.
"""

from __future__ import annotations

type JsonPrimitive = None | bool | int | float | str
type JsonValue = JsonPrimitive | list[JsonValue] | dict[str, JsonValue]

__all__ = ["JsonPrimitive", "JsonValue"]
