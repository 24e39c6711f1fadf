# src/json_formatter/application/services/virtualizer.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Windowed materialization of large composites.

Purpose:
    Bound the synchronous work done for a composite with many children.
    Each lazy composite gets an explicit :class:`VirtualWindow` state object;
    a fixed initial window is materialized synchronously and the rest is
    completed in batches, one batch per scheduler turn, or on demand through
    :meth:`Virtualizer.reveal`.

Layer:
    application/services

Notes:
    - Entries are always appended in index order, whichever path (batch or
      reveal) materializes them.
    - Every continuation first checks that the window's group is still
      attached to the document; a detached group stops the window silently.
    - A scheduler failure leaves a visible truncation marker instead of
      dropping the remaining entries; :meth:`Virtualizer.resume` picks the
      window up again.
    - A producer fault stops its window behind the same marker; the
      remaining entries are reported, never dropped silently.
    - Only the composites present at :meth:`Virtualizer.mount` get a
      synchronous initial window. Lazy composites found inside materialized
      entries are queued, so one pass never cascades down the tree.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import Any, Final

from json_formatter.config.settings import Settings, get_settings
from json_formatter.domain.entities.render_node import RenderNode
from json_formatter.domain.exceptions.base import RenderFault, SchedulingError
from json_formatter.infrastructure.dom import templates as t
from json_formatter.infrastructure.dom.scan import is_attached
from json_formatter.infrastructure.logging.logger import get_json_logger
from json_formatter.infrastructure.observability.metrics import (
    get_batches_cancelled_total,
    get_entries_materialized_total,
)
from json_formatter.infrastructure.scheduling.scheduler import Scheduler

__all__ = ["VirtualWindow", "Virtualizer"]

logger = get_json_logger(__name__)

# Entries produced between two deadline checks inside one batch.
_CHUNK: Final[int] = 25

type MaterializeListener = Callable[[list[RenderNode]], None]


@dataclass(slots=True, eq=False)
class VirtualWindow:
    """Progress of one lazy composite.

    Attributes:
        node:
            The lazy composite; its ``children`` list doubles as the cursor.
        scheduled:
            A continuation is queued on the scheduler.
        cancelled:
            The last continuation found the group detached.
        failed:
            Producing an entry raised; the window stops for good.
        truncation:
            Marker element shown while scheduling is impossible.
    """

    node: RenderNode
    scheduled: bool = False
    cancelled: bool = False
    failed: bool = False
    truncation: Any = None

    @property
    def cursor(self) -> int:
        """Index of the next entry to materialize."""
        return self.node.materialized

    @property
    def total(self) -> int:
        return self.node.child_count

    @property
    def remaining(self) -> int:
        return self.total - self.cursor

    @property
    def done(self) -> bool:
        return self.cursor >= self.total


class Virtualizer:
    """Drive lazy composites to completion on a cooperative scheduler.

    Args:
        document: The document the rendered tree is attached to.
        scheduler: Host scheduler used for continuations.
        settings: Window and batch policy; defaults to :func:`get_settings`.
    """

    def __init__(
        self,
        document: Any,
        scheduler: Scheduler,
        *,
        settings: Settings | None = None,
    ) -> None:
        cfg = settings or get_settings()
        self._document = document
        self._scheduler = scheduler
        self.initial_window = cfg.initial_window
        self.batch_size = cfg.batch_size
        self.frame_budget_s = cfg.frame_budget_ms / 1000.0
        self._windows: dict[RenderNode, VirtualWindow] = {}
        self._listeners: list[MaterializeListener] = []
        self._idle_waiters: list[asyncio.Future[None]] = []

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #
    @property
    def pending(self) -> int:
        """Number of unfinished windows with a continuation queued."""
        return sum(1 for w in self._windows.values() if w.scheduled and not w.done)

    def window(self, node: RenderNode) -> VirtualWindow | None:
        """Return the window tracking ``node``, if it is lazy and mounted."""
        return self._windows.get(node)

    def subscribe(self, listener: MaterializeListener) -> None:
        """Call ``listener`` with every batch of newly materialized child nodes."""
        self._listeners.append(listener)

    def mount(self, root: RenderNode) -> None:
        """Open a window for every lazy composite in the materialized tree."""
        for node in list(root.iter_nodes()):
            if node.lazy is not None and node not in self._windows:
                self._open(node)

    def reveal(self, node: RenderNode, index: int) -> RenderNode:
        """Materialize ``node``'s children up to ``index`` and return that child.

        Args:
            node: A composite node.
            index: Child position.

        Returns:
            The child node at ``index``.

        Raises:
            IndexError: If ``index`` is outside ``[0, child_count)``.
            RenderFault: If an entry up to ``index`` cannot be rendered.
        """
        if not 0 <= index < node.child_count:
            raise IndexError(f"child index {index} out of range 0..{node.child_count - 1}")
        if index >= node.materialized:
            window = self._windows.get(node) or self._open(node)
            self._materialize(window, index + 1 - window.cursor, phase="reveal")
            if index >= node.materialized:
                raise RenderFault(
                    f"Entry {index} could not be rendered",
                    details={"index": index, "materialized": node.materialized},
                )
        return node.children[index]

    def resume(self, node: RenderNode) -> None:
        """Continue incomplete windows in ``node``'s subtree without restarting them."""
        for descendant in list(node.iter_nodes()):
            window = self._windows.get(descendant)
            if window is None or window.done or window.failed or window.scheduled:
                continue
            window.cancelled = False
            self._clear_truncation(window)
            self._schedule(window)

    def flush(self) -> None:
        """Synchronously materialize every remaining entry of every window."""
        try:
            while True:
                open_windows = [w for w in self._windows.values() if not (w.done or w.failed)]
                if not open_windows:
                    break
                for window in open_windows:
                    self._materialize(window, window.remaining, phase="batch")
        finally:
            self._settle()

    async def wait_idle(self) -> None:
        """Wait until no continuation is queued."""
        if self.pending == 0:
            return
        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._idle_waiters.append(waiter)
        await waiter

    # ------------------------------------------------------------------ #
    # Window lifecycle                                                   #
    # ------------------------------------------------------------------ #
    def _open(self, node: RenderNode) -> VirtualWindow:
        window = VirtualWindow(node=node)
        self._windows[node] = window
        if node.lazy is not None:
            self._materialize(window, self.initial_window, phase="initial")
            self._schedule(window)
        return window

    def _defer(self, node: RenderNode) -> None:
        window = VirtualWindow(node=node)
        self._windows[node] = window
        self._schedule(window)

    def _materialize(
        self,
        window: VirtualWindow,
        limit: int,
        *,
        phase: str,
        deadline: float | None = None,
    ) -> int:
        node = window.node
        if node.lazy is None or limit <= 0 or window.done or window.failed:
            return 0
        self._clear_truncation(window)

        produced = 0
        try:
            while produced < limit and not window.done:
                start = window.cursor
                stop = min(start + min(_CHUNK, limit - produced), window.total)
                children = node.lazy.produce(node, start, stop)
                node.group.extend(child.element for child in children)
                node.children.extend(children)
                produced += len(children)
                self._on_materialized(children)
                if deadline is not None and time.perf_counter() >= deadline:
                    break
        except (RenderFault, RecursionError) as exc:
            window.failed = True
            logger.error(
                "Could not render virtualized entries; showing truncation",
                extra={
                    "index": window.cursor,
                    "remaining": window.remaining,
                    "error": type(exc).__name__,
                },
            )
            self._show_truncation(window)
        finally:
            get_entries_materialized_total().labels(phase=phase).inc(produced)
        return produced

    def _on_materialized(self, children: list[RenderNode]) -> None:
        for listener in self._listeners:
            listener(children)
        for child in children:
            for descendant in child.iter_nodes():
                if descendant.lazy is not None and descendant not in self._windows:
                    self._defer(descendant)

    def _schedule(self, window: VirtualWindow) -> None:
        if window.done or window.failed or window.scheduled:
            return
        try:
            self._scheduler.call_soon(partial(self._run_batch, window))
        except SchedulingError as exc:
            logger.warning(
                "Could not schedule virtualization batch; showing truncation",
                extra={"remaining": window.remaining, "reason": exc.code},
            )
            self._show_truncation(window)
            return
        window.scheduled = True

    def _run_batch(self, window: VirtualWindow) -> None:
        window.scheduled = False
        try:
            if window.done or window.failed:
                return
            if not is_attached(window.node.group, self._document):
                window.cancelled = True
                get_batches_cancelled_total().inc()
                logger.debug(
                    "Container detached; stopping virtualization",
                    extra={"remaining": window.remaining},
                )
                return

            deadline = time.perf_counter() + self.frame_budget_s
            self._materialize(window, self.batch_size, phase="batch", deadline=deadline)
            self._schedule(window)
        finally:
            self._settle()

    def _settle(self) -> None:
        if self.pending:
            return
        waiters, self._idle_waiters = self._idle_waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)

    # ------------------------------------------------------------------ #
    # Truncation marker                                                  #
    # ------------------------------------------------------------------ #
    def _show_truncation(self, window: VirtualWindow) -> None:
        self._clear_truncation(window)
        window.truncation = t.truncation_marker(window.remaining)
        window.node.group.append(window.truncation)

    def _clear_truncation(self, window: VirtualWindow) -> None:
        if window.truncation is None:
            return
        parent = window.truncation.getparent()
        if parent is not None:
            parent.remove(window.truncation)
        window.truncation = None
