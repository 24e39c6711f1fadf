# src/json_formatter/domain/exceptions/base.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Base Domain Exceptions.

Summary:
    Canonical exception hierarchy for the formatter. Detection and parse
    outcomes are *values* (see :mod:`json_formatter.domain.entities.detection_result`);
    the classes below cover programming errors and host failures only.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from typing import Any


class FormatterError(Exception):
    """Base class for all formatter exceptions.

    Attributes:
        code:
            Stable error code suitable for logs and metrics labels.
        details:
            Optional machine-readable diagnostic payload.
    """

    code: str = "FORMATTER_ERROR"

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        """Initialize a FormatterError instance.

        Args:
            message:
                Human-readable error message.
            details:
                Optional structured diagnostic payload for logs.
        """
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class RenderFault(FormatterError):
    """A value of unknown kind reached the renderer.

    Cannot happen for the output of a strict JSON parse; indicates a
    programming error rather than a recoverable condition.
    """

    code = "RENDER_FAULT"


class SchedulingError(FormatterError):
    """The host scheduler refused to accept a continuation."""

    code = "SCHEDULING_ERROR"
