# src/json_formatter/infrastructure/scheduling/scheduler.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Cooperative scheduling over the host event loop.

Summary:
    The virtualizer hands each continuation to a :class:`Scheduler`; every
    callback runs in its own turn of the loop so input handling and painting
    interleave with batches. :class:`AsyncioScheduler` is the production
    implementation.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Protocol

from json_formatter.domain.exceptions.base import SchedulingError

__all__ = ["AsyncioScheduler", "Scheduler"]


class Scheduler(Protocol):
    """Accepts callbacks to run in a later turn of the host loop."""

    def call_soon(self, callback: Callable[[], None]) -> None:
        """Queue ``callback`` for a future turn.

        Raises:
            SchedulingError: If the host cannot accept more work.
        """
        ...


class AsyncioScheduler:
    """Schedule callbacks with ``loop.call_soon``.

    Args:
        loop: Event loop to use; defaults to the loop running at call time.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_soon(self, callback: Callable[[], None]) -> None:
        try:
            loop = self._loop or asyncio.get_running_loop()
            loop.call_soon(callback)
        except RuntimeError as exc:
            # No running loop, or the loop is already closed.
            raise SchedulingError(str(exc)) from exc
