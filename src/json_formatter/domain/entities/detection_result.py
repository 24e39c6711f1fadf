# src/json_formatter/domain/entities/detection_result.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Detection Result Entities.

Purpose:
    Tagged outcome of the raw-JSON page detector. Every policy failure is a
    :class:`Rejected` value carrying a human-readable note; success is an
    :class:`Accepted` value carrying the source element and the parsed value.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final

from json_formatter.types import JsonValue

NOTE_TITLE: Final[str] = "document.title is contentful"
NOTE_TEXTUAL: Final[str] = "body contains textual elements"
NOTE_MULTIPLE: Final[str] = "Multiple body > pre elements"
NOTE_NO_PRE: Final[str] = "No body > pre"
NOTE_NOT_RENDERED: Final[str] = "body > pre is not rendered"
NOTE_NO_CONTENT: Final[str] = "No content in body > pre"
NOTE_TOO_LONG: Final[str] = "Too long"
NOTE_BAD_START: Final[str] = "Does not start with { or ["
NOTE_NOT_JSON: Final[str] = "Does not parse as JSON"
NOTE_DONE: Final[str] = "done"


@dataclass(frozen=True, slots=True)
class Rejected:
    """The document is not a raw JSON page.

    Attributes:
        note:
            Human-readable reason for the rejection.
        raw_length:
            Length of the candidate text when the policy got far enough to
            read it, otherwise ``None``.
    """

    note: str
    raw_length: int | None = None

    @property
    def formatted(self) -> bool:
        """Always False; mirrors :attr:`Accepted.formatted`."""
        return False


@dataclass(frozen=True, slots=True)
class Accepted:
    """The document is a raw JSON page and its text parsed successfully.

    Attributes:
        note:
            Always ``"done"``.
        raw_length:
            Length of the raw text of the ``pre`` element.
        element:
            The ``body > pre`` element holding the raw text.
        parsed:
            The parsed JSON value.
    """

    note: str
    raw_length: int
    element: Any
    parsed: JsonValue

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.raw_length < 1:
            raise ValueError("raw_length must be >= 1 for an accepted document")

    @property
    def formatted(self) -> bool:
        """Always True."""
        return True


type DetectionResult = Rejected | Accepted

__all__ = [
    "Accepted",
    "DetectionResult",
    "NOTE_BAD_START",
    "NOTE_DONE",
    "NOTE_MULTIPLE",
    "NOTE_NOT_JSON",
    "NOTE_NOT_RENDERED",
    "NOTE_NO_CONTENT",
    "NOTE_NO_PRE",
    "NOTE_TEXTUAL",
    "NOTE_TITLE",
    "NOTE_TOO_LONG",
    "Rejected",
]
