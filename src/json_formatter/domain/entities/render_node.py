# src/json_formatter/domain/entities/render_node.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Render Node Entity.

Purpose:
    Element-adjacent counterpart of one parsed JSON value. Render nodes are
    created lazily by the renderer and the virtualizer; they carry collapse
    state and, for virtualized composites, a lazy child descriptor.

Layer:
    domain/entities

Notes:
    - The parent reference is weak: a node never keeps its parent alive.
    - ``collapsed`` is orthogonal to materialization; a node may be collapsed
      while its children are still being produced.
"""

from __future__ import annotations

import weakref
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from json_formatter.domain.enums.value_kind import ValueKind

type ChildProducer = Callable[["RenderNode", int, int], list["RenderNode"]]


@dataclass(frozen=True, slots=True)
class LazyChildren:
    """Descriptor for children that are rendered on demand.

    Attributes:
        count:
            Total number of children of the composite value.
        produce:
            ``produce(parent, start, stop)`` renders the entries for the
            half-open index range ``[start, stop)``, in order.
    """

    count: int
    produce: ChildProducer


@dataclass(slots=True, eq=False, weakref_slot=True)
class RenderNode:
    """Rendered counterpart of one JSON value.

    Attributes:
        kind:
            Kind of the underlying value.
        index:
            Ordinal position among siblings (0 for the root).
        key:
            Object key for object properties, ``None`` otherwise.
        element:
            The ``entry`` element.
        expander:
            The expander control, for non-empty composites.
        group:
            The ``blockInner`` children-group element, for non-empty composites.
        child_count:
            Number of children of the value (0 for leaves).
        collapsed:
            Collapse state; meaningful for composites only.
        children:
            Materialized child nodes, in index order.
        lazy:
            Lazy descriptor when the children are virtualized.
    """

    kind: ValueKind
    index: int
    key: str | None
    element: Any
    expander: Any = None
    group: Any = None
    child_count: int = 0
    collapsed: bool = False
    children: list[RenderNode] = field(default_factory=list)
    lazy: LazyChildren | None = None
    _parent_ref: weakref.ReferenceType[RenderNode] | None = field(default=None, repr=False)

    @property
    def parent(self) -> RenderNode | None:
        """Return the parent node, if it is still alive."""
        return self._parent_ref() if self._parent_ref is not None else None

    @parent.setter
    def parent(self, value: RenderNode | None) -> None:
        self._parent_ref = weakref.ref(value) if value is not None else None

    @property
    def is_composite(self) -> bool:
        """Return True for arrays and objects."""
        return self.kind.is_composite

    @property
    def is_toggleable(self) -> bool:
        """Return True when the node has an expander."""
        return self.expander is not None

    @property
    def materialized(self) -> int:
        """Return the number of materialized children."""
        return len(self.children)

    @property
    def is_complete(self) -> bool:
        """Return True when every child is materialized."""
        return len(self.children) == self.child_count

    def iter_nodes(self) -> Iterator[RenderNode]:
        """Yield this node and every materialized descendant, depth first."""
        stack: list[RenderNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))
