# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Formatter exception hierarchy."""

from json_formatter.domain.exceptions.base import FormatterError, RenderFault, SchedulingError

__all__ = ["FormatterError", "RenderFault", "SchedulingError"]
