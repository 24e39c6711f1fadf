# src/json_formatter/infrastructure/observability/metrics.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Prometheus metrics utilities (registry-aware, test safe).

Accessor functions return collectors bound to the **current**
``prometheus_client.REGISTRY``. Caches reset automatically when the active
registry changes, so tests that swap the default registry never hit
duplicate-registration errors.

Example:
    get_detections_total().labels(outcome="accepted").inc()
    get_parse_seconds().observe(0.004)
"""

from __future__ import annotations

import logging
import threading
from contextlib import suppress
from typing import Final

import prometheus_client as prom
from prometheus_client import Counter, Histogram

_log = logging.getLogger(__name__)

# Parse latency buckets (seconds); large payloads take tens of milliseconds.
_BUCKETS: Final[tuple[float, ...]] = (
    0.001,
    0.005,
    0.010,
    0.025,
    0.050,
    0.100,
    0.250,
    0.500,
    1.000,
    2.500,
)

_registry_id: int | None = None
_cache: dict[str, Counter | Histogram] = {}
_lock = threading.RLock()


def _ensure_registry() -> None:
    """Reset caches if the active registry changed."""
    global _registry_id
    with _lock:
        rid = id(prom.REGISTRY)
        if _registry_id != rid:
            _cache.clear()
            _registry_id = rid


def _lookup_existing(
    name: str, kind: type[Counter] | type[Histogram]
) -> Counter | Histogram | None:
    """Return a previously-registered collector of ``kind`` from the active registry."""
    with _lock, suppress(Exception):
        mapping = getattr(prom.REGISTRY, "_names_to_collectors", None)
        if isinstance(mapping, dict):
            col = mapping.get(name)
            if isinstance(col, kind):
                return col
    return None


def _get_or_create(
    kind: type[Counter] | type[Histogram],
    name: str,
    help_text: str,
    *,
    labelnames: tuple[str, ...] = (),
) -> Counter | Histogram:
    """Get or create a registry-bound collector with stable identity.

    1. Return from module cache if present for the active registry.
    2. If the registry already has a collector by this name, reuse it.
    3. Otherwise, register a new collector on the active registry.

    Args:
        kind: ``Counter`` or ``Histogram``.
        name: Metric name (snake_case).
        help_text: Human-readable description.
        labelnames: Optional label names tuple.

    Returns:
        Collector bound to ``prom.REGISTRY``.
    """
    _ensure_registry()
    with _lock:
        cached = _cache.get(name)
        if isinstance(cached, kind):
            return cached

        existing = _lookup_existing(name, kind)
        if existing is not None:
            _cache[name] = existing
            return existing

        try:
            if kind is Histogram:
                col: Counter | Histogram = Histogram(
                    name, help_text, labelnames, buckets=_BUCKETS, registry=prom.REGISTRY
                )
            else:
                col = Counter(name, help_text, labelnames, registry=prom.REGISTRY)
        except ValueError as exc:
            if "Duplicated timeseries" in str(exc):
                again = _lookup_existing(name, kind)
                if again is not None:
                    _cache[name] = again
                    return again
            _log.exception("Failed to register Prometheus collector %s", name)
            raise
        _cache[name] = col
        return col


def get_detections_total() -> Counter:
    """Return counter of detection outcomes.

    Labels:
        outcome: ``accepted`` or the snake_case rejection reason.
    """
    col = _get_or_create(
        Counter,
        "json_formatter_detections",
        "Raw JSON page detection outcomes",
        labelnames=("outcome",),
    )
    assert isinstance(col, Counter)
    return col


def get_parse_seconds() -> Histogram:
    """Return histogram of strict JSON parse latency (seconds)."""
    col = _get_or_create(
        Histogram,
        "json_formatter_parse_seconds",
        "Latency (seconds) of strict JSON parsing during detection",
    )
    assert isinstance(col, Histogram)
    return col


def get_entries_materialized_total() -> Counter:
    """Return counter of entries materialized by the virtualizer.

    Labels:
        phase: ``initial``, ``batch`` or ``reveal``.
    """
    col = _get_or_create(
        Counter,
        "json_formatter_entries_materialized",
        "Entries materialized for lazy composites",
        labelnames=("phase",),
    )
    assert isinstance(col, Counter)
    return col


def get_batches_cancelled_total() -> Counter:
    """Return counter of continuations that found their container detached."""
    col = _get_or_create(
        Counter,
        "json_formatter_batches_cancelled",
        "Virtualization continuations stopped because the container was removed",
    )
    assert isinstance(col, Counter)
    return col
