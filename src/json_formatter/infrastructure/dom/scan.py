# src/json_formatter/infrastructure/dom/scan.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Document inspection helpers.

Summary:
    Read-only queries over an ``lxml.html`` document: locating the single
    ``body > pre`` candidate, the visibility test used in place of a
    browser's ``checkVisibility()``, and the attachment test that drives
    cooperative cancellation.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Final

from lxml.html import HtmlElement

TEXTUAL_TAGS: Final[frozenset[str]] = frozenset({"p", "h1", "h2", "h3", "h4", "h5", "h6"})

_DISPLAY_NONE: Final[re.Pattern[str]] = re.compile(
    r"(?:^|;)\s*display\s*:\s*none\s*(?:!\s*important\s*)?(?:;|$)", re.IGNORECASE
)


class ScanOutcome(str, Enum):
    """Non-element outcomes of :func:`find_single_body_pre`."""

    MULTIPLE = "multiple"
    TEXTUAL = "textual"
    MISSING = "missing"


def document_root(document: Any) -> HtmlElement:
    """Return the root element of a document or element tree."""
    getroot = getattr(document, "getroot", None)
    return getroot() if callable(getroot) else document


def document_title(document: Any) -> str:
    """Return the whitespace-collapsed ``<title>`` text, or an empty string."""
    return " ".join((document_root(document).findtext(".//title") or "").split())


def document_body(document: Any) -> HtmlElement | None:
    root = document_root(document)
    if root.tag == "body":
        return root
    return root.find(".//body")


def _tag(element: Any) -> str | None:
    # Comments and processing instructions carry a non-string tag.
    return element.tag.lower() if isinstance(element.tag, str) else None


def find_single_body_pre(document: Any) -> HtmlElement | ScanOutcome:
    """Scan the body's direct children for exactly one ``pre``.

    Scanning stops at the first decisive child: a textual element, or a
    second ``pre``.

    Args:
        document: An ``lxml.html`` document.

    Returns:
        The ``pre`` element, or a :class:`ScanOutcome`.
    """
    body = document_body(document)
    if body is None:
        return ScanOutcome.MISSING

    pre: HtmlElement | None = None
    for child in body:
        tag = _tag(child)
        if tag == "pre":
            if pre is not None:
                return ScanOutcome.MULTIPLE
            pre = child
        elif tag in TEXTUAL_TAGS:
            return ScanOutcome.TEXTUAL

    return pre if pre is not None else ScanOutcome.MISSING


def is_attached(element: HtmlElement, document: Any) -> bool:
    """Return True when ``element`` belongs to ``document``'s tree.

    The ancestor chain is walked explicitly: an element removed from its
    parent still reports the original document through ``getroottree()``.
    """
    top = element
    for top in element.iterancestors():
        pass
    return top is document_root(document)


def _hides(element: HtmlElement) -> bool:
    if element.get("hidden") is not None:
        return True
    style = element.get("style")
    return bool(style and _DISPLAY_NONE.search(style))


def is_rendered(element: HtmlElement, document: Any) -> bool:
    """Approximate ``checkVisibility()`` for a static document.

    An element is rendered when it is attached to the document and neither
    it nor any ancestor has the ``hidden`` attribute or an inline
    ``display: none`` style.
    """
    if not is_attached(element, document):
        return False
    if _hides(element):
        return False
    return not any(_hides(ancestor) for ancestor in element.iterancestors())
