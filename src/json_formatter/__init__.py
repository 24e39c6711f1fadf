# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Raw JSON page detection and tree rendering."""

__all__ = ["__version__"]

__version__ = "0.1.0"
