# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Formatter configuration."""

from json_formatter.config.settings import DEFAULT_MAX_LENGTH, Settings, get_settings

__all__ = ["DEFAULT_MAX_LENGTH", "Settings", "get_settings"]
