# src/json_formatter/application/services/renderer.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Tree builder: parsed JSON value to a detached element subtree.

Purpose:
    Build one ``entry`` element per JSON value with a single formatting rule
    per value kind, wrapping composites in a children group with separators.

Layer:
    application/services

Notes:
    - The input value is never mutated; every call returns a new subtree.
    - Object keys are rendered in insertion (parse) order.
    - Composites with more children than the threshold are not built
      eagerly: they get an empty group plus a :class:`LazyChildren`
      descriptor that the virtualizer drives.
"""

from __future__ import annotations

from collections.abc import Sequence
from functools import partial
from typing import Any

from json_formatter.config.settings import get_settings
from json_formatter.domain.entities.render_node import LazyChildren, RenderNode
from json_formatter.domain.enums.value_kind import ValueKind, kind_of
from json_formatter.domain.exceptions.base import RenderFault
from json_formatter.domain.services.json_text import (
    escape_json_string,
    format_number,
    is_link_candidate,
    xml_safe_href,
)
from json_formatter.infrastructure.dom import templates as t
from json_formatter.types import JsonValue

__all__ = ["TreeBuilder", "render"]


class TreeBuilder:
    """Render JSON values into ``entry`` elements.

    Args:
        threshold: Child count above which a composite renders lazily;
            defaults to the configured ``virtualization_threshold``.
    """

    def __init__(self, threshold: int | None = None) -> None:
        self.threshold = (
            threshold if threshold is not None else get_settings().virtualization_threshold
        )

    def render(self, value: JsonValue) -> RenderNode:
        """Render ``value`` as a detached root node.

        Raises:
            RenderFault: If ``value`` contains something a JSON parse cannot
                produce, or nests deeper than the interpreter stack allows.
        """
        try:
            return self._build(value, key=None, index=0, parent=None, separator=False)
        except RecursionError as exc:
            raise RenderFault("JSON value nests too deeply to render") from exc

    # ------------------------------------------------------------------ #
    # Entries                                                            #
    # ------------------------------------------------------------------ #
    def _build(
        self,
        value: Any,
        *,
        key: str | None,
        index: int,
        parent: RenderNode | None,
        separator: bool,
    ) -> RenderNode:
        kind = kind_of(value)
        if kind is None:
            raise RenderFault(
                f"Unknown JSON value kind: {type(value).__name__}",
                details={"type": type(value).__name__, "index": index},
            )

        entry = t.entry()
        node = RenderNode(kind=kind, index=index, key=key, element=entry)
        node.parent = parent

        if kind.is_composite and value:
            node.expander = t.expander()
            entry.append(node.expander)

        if key is not None:
            entry.classes.add(t.CLS_OBJ_PROP)
            entry.extend(t.key_preamble(escape_json_string(key)))
        elif parent is not None:
            entry.classes.add(t.CLS_ARR_ELEM)

        match kind:
            case ValueKind.NULL:
                entry.append(t.null_token())
            case ValueKind.BOOLEAN:
                entry.append(t.boolean_token(value))
            case ValueKind.NUMBER:
                entry.append(t.number_token(format_number(value)))
            case ValueKind.STRING:
                href = xml_safe_href(value) if is_link_candidate(value) else None
                entry.append(t.string_token(escape_json_string(value), href))
            case ValueKind.OBJECT | ValueKind.ARRAY:
                self._composite(node, value)

        if separator:
            entry.append(t.comma())
        return node

    def _composite(self, node: RenderNode, value: dict[str, Any] | list[Any]) -> None:
        opener, closer = ("{", "}") if node.kind is ValueKind.OBJECT else ("[", "]")
        entry = node.element
        size = len(value)
        node.child_count = size

        entry.append(t.brace(opener))
        if size:
            entry.append(t.ellipsis())
            node.group = t.group()
            entry.append(node.group)

            producer = (
                partial(self._produce_object, value, list(value))
                if isinstance(value, dict)
                else partial(self._produce_array, value)
            )
            if size > self.threshold:
                node.lazy = LazyChildren(count=size, produce=producer)
            else:
                node.children = producer(node, 0, size)
                node.group.extend(child.element for child in node.children)
        entry.append(t.brace(closer))
        entry.set(t.ATTR_SIZE, t.size_label(size))

    # ------------------------------------------------------------------ #
    # Child producers                                                    #
    # ------------------------------------------------------------------ #
    def _produce_object(
        self,
        value: dict[str, Any],
        keys: Sequence[str],
        parent: RenderNode,
        start: int,
        stop: int,
    ) -> list[RenderNode]:
        last = len(keys) - 1
        return [
            self._build(value[keys[i]], key=keys[i], index=i, parent=parent, separator=i < last)
            for i in range(start, min(stop, len(keys)))
        ]

    def _produce_array(
        self,
        value: list[Any],
        parent: RenderNode,
        start: int,
        stop: int,
    ) -> list[RenderNode]:
        last = len(value) - 1
        return [
            self._build(value[i], key=None, index=i, parent=parent, separator=i < last)
            for i in range(start, min(stop, len(value)))
        ]


def render(value: JsonValue, threshold: int | None = None) -> RenderNode:
    """Render ``value`` with a fresh :class:`TreeBuilder`."""
    return TreeBuilder(threshold).render(value)
