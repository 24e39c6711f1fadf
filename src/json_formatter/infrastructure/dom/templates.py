# src/json_formatter/infrastructure/dom/templates.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Element factories for the rendered tree.

Summary:
    Every element the renderer emits is created here so the class markers
    consumed by stylesheets, the toolbar and the accessibility binder stay in
    one place. Factories always return fresh, detached elements.
"""

from __future__ import annotations

from typing import Final

from lxml.html import Element, HtmlElement

# Stable class markers (public contract for collaborators).
CLS_ENTRY: Final[str] = "entry"
CLS_OBJ_PROP: Final[str] = "objProp"
CLS_ARR_ELEM: Final[str] = "arrElem"
CLS_EXPANDER: Final[str] = "e"
CLS_KEY: Final[str] = "k"
CLS_STRING: Final[str] = "s"
CLS_NUMBER: Final[str] = "n"
CLS_BOOLEAN: Final[str] = "bl"
CLS_NULL: Final[str] = "nl"
CLS_BRACE: Final[str] = "b"
CLS_ELLIPSIS: Final[str] = "ell"
CLS_GROUP: Final[str] = "blockInner"
CLS_COMMA: Final[str] = "comma"
CLS_QUOTE: Final[str] = "dblq"
CLS_COLON: Final[str] = "colon"
CLS_COLLAPSED: Final[str] = "collapsed"
CLS_TRUNCATED: Final[str] = "truncated"

ATTR_EXPANDED: Final[str] = "aria-expanded"
ATTR_SIZE: Final[str] = "data-size"

NBSP: Final[str] = "\u00a0"


def span(class_name: str | None = None, text: str | None = None) -> HtmlElement:
    """Create a detached ``span`` with an optional class and text."""
    el: HtmlElement = Element("span")
    if class_name is not None:
        el.set("class", class_name)
    if text is not None:
        el.text = text
    return el


def entry() -> HtmlElement:
    return span(CLS_ENTRY)


def expander() -> HtmlElement:
    return span(CLS_EXPANDER)


def ellipsis() -> HtmlElement:
    return span(CLS_ELLIPSIS)


def group() -> HtmlElement:
    return span(CLS_GROUP)


def comma() -> HtmlElement:
    return span(CLS_COMMA, ",")


def null_token() -> HtmlElement:
    return span(CLS_NULL, "null")


def boolean_token(value: bool) -> HtmlElement:
    return span(CLS_BOOLEAN, "true" if value else "false")


def number_token(text: str) -> HtmlElement:
    return span(CLS_NUMBER, text)


def brace(char: str) -> HtmlElement:
    return span(CLS_BRACE, char)


def string_token(escaped: str, href: str | None = None) -> HtmlElement:
    """Create a string token whose text content is ``"<escaped>"``.

    Args:
        escaped: Escaped display text, without quotes.
        href: Link target; when given, the escaped text is wrapped in a link.
    """
    token = span(CLS_STRING, '"')
    if href is None:
        inner = span(text=escaped)
    else:
        inner = Element("a")
        inner.set("href", href)
        inner.set("target", "_blank")
        inner.set("rel", "noopener noreferrer")
        inner.text = escaped
    inner.tail = '"'
    token.append(inner)
    return token


def key_preamble(escaped_key: str) -> list[HtmlElement]:
    """Return the ``"key":`` + NBSP elements that precede an object value."""
    return [
        span(CLS_QUOTE, '"'),
        span(CLS_KEY, escaped_key),
        span(CLS_QUOTE, '"'),
        span(CLS_COLON, ":" + NBSP),
    ]


def truncation_marker(remaining: int) -> HtmlElement:
    label = "item" if remaining == 1 else "items"
    return span(CLS_TRUNCATED, f"… {remaining} more {label}")


def size_label(count: int) -> str:
    return f" // {count} {'item' if count == 1 else 'items'}"


def container(element_id: str, *, hidden: bool = False) -> HtmlElement:
    """Create a top-level ``div`` container for the parsed or raw view."""
    div: HtmlElement = Element("div")
    div.set("id", element_id)
    if hidden:
        div.set("hidden", "")
    return div
