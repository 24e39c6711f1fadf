# src/json_formatter/application/services/expand_collapse.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Expand/collapse state of rendered composites.

Purpose:
    Own the collapsed/expanded state of every toggleable node, reflect it on
    the entry's ``collapsed`` class and the expander's ``aria-expanded``
    attribute, and translate pointer and key activations into toggles.

Layer:
    application/services

Notes:
    - Collapsing hides children visually; it never discards them.
    - Expanding a node resumes any unfinished virtualization below it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Final

from json_formatter.application.services.virtualizer import Virtualizer
from json_formatter.domain.entities.render_node import RenderNode
from json_formatter.infrastructure.dom import templates as t
from json_formatter.infrastructure.logging.logger import get_json_logger

__all__ = [
    "TOGGLE_KEYS",
    "ExpandCollapseController",
    "KeyActivation",
    "PointerActivation",
]

logger = get_json_logger(__name__)

TOGGLE_KEYS: Final[frozenset[str]] = frozenset({"Enter", " "})


@dataclass(frozen=True, slots=True)
class PointerActivation:
    """A click on ``target``; ``modifier`` is set for Ctrl/Meta clicks."""

    target: Any
    modifier: bool = False


@dataclass(frozen=True, slots=True)
class KeyActivation:
    """A key press while ``target`` has focus."""

    target: Any
    key: str


type Activation = PointerActivation | KeyActivation


class ExpandCollapseController:
    """Toggle composites of a rendered tree.

    Args:
        virtualizer: Resumed for a node's subtree when that node is expanded.
    """

    def __init__(self, virtualizer: Virtualizer | None = None) -> None:
        self._virtualizer = virtualizer
        self._by_expander: dict[Any, RenderNode] = {}
        if virtualizer is not None:
            virtualizer.subscribe(self._register)

    def bind(self, root: RenderNode) -> None:
        """Register every materialized toggleable node below ``root``."""
        self._register([root])

    def node_for(self, expander: Any) -> RenderNode | None:
        """Return the node owning ``expander``, if it is registered."""
        return self._by_expander.get(expander)

    def toggle(self, node: RenderNode) -> None:
        """Flip ``node`` between collapsed and expanded."""
        self.set_collapsed(node, not node.collapsed)

    def set_collapsed(self, node: RenderNode, collapsed: bool) -> None:
        """Put ``node`` in the given state.

        Raises:
            ValueError: If ``node`` has no expander.
        """
        if not node.is_toggleable:
            raise ValueError("node has no expander and cannot be toggled")
        node.collapsed = collapsed
        if collapsed:
            node.element.classes.add(t.CLS_COLLAPSED)
        else:
            node.element.classes.discard(t.CLS_COLLAPSED)
        node.expander.set(t.ATTR_EXPANDED, "false" if collapsed else "true")
        if not collapsed and self._virtualizer is not None:
            self._virtualizer.resume(node)

    def activate(self, expander: Any, *, modifier: bool = False) -> bool:
        """Toggle the node owning ``expander``.

        With ``modifier``, every toggleable sibling in the same group is put
        into the clicked node's target state as well.

        Returns:
            True when ``expander`` belongs to a registered node.
        """
        node = self._by_expander.get(expander)
        if node is None:
            return False

        collapsed = not node.collapsed
        targets: Iterable[RenderNode] = [node]
        parent = node.parent
        if modifier and parent is not None:
            targets = [sibling for sibling in parent.children if sibling.is_toggleable]
        for target in targets:
            self.set_collapsed(target, collapsed)
        logger.debug(
            "Toggled",
            extra={"collapsed": collapsed, "siblings": modifier, "index": node.index},
        )
        return True

    def handle(self, event: Activation) -> bool:
        """Dispatch a host activation; returns whether it caused a toggle."""
        match event:
            case PointerActivation(target=target, modifier=modifier):
                return self.activate(target, modifier=modifier)
            case KeyActivation(target=target, key=key) if key in TOGGLE_KEYS:
                return self.activate(target)
            case _:
                return False

    def _register(self, nodes: list[RenderNode]) -> None:
        for top in nodes:
            for node in top.iter_nodes():
                if node.is_toggleable and node.expander not in self._by_expander:
                    self._by_expander[node.expander] = node
                    node.expander.set(
                        t.ATTR_EXPANDED, "false" if node.collapsed else "true"
                    )
