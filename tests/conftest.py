# tests/conftest.py
from __future__ import annotations

import html
from collections.abc import Callable, Generator, Iterator
from typing import Any

import lxml.html
import prometheus_client as prom
import pytest
from prometheus_client import CollectorRegistry

from json_formatter.config.settings import Settings, get_settings
from json_formatter.domain.exceptions.base import SchedulingError


class ManualScheduler:
    """Scheduler that queues callbacks until the test runs them explicitly."""

    def __init__(self) -> None:
        self.queue: list[Callable[[], None]] = []
        self.fail = False

    def call_soon(self, callback: Callable[[], None]) -> None:
        if self.fail:
            raise SchedulingError("scheduler closed")
        self.queue.append(callback)

    def run_next(self) -> None:
        """Run exactly one queued callback (one loop turn)."""
        self.queue.pop(0)()

    def run_all(self, max_turns: int = 10_000) -> int:
        """Run callbacks until the queue drains; returns the number of turns."""
        turns = 0
        while self.queue:
            assert turns < max_turns, "scheduler did not go idle"
            self.run_next()
            turns += 1
        return turns


def make_document(pre_text: str | None = None, *, title: str = "", body_extra: str = "") -> Any:
    """Build an ``lxml.html`` document with an optional ``body > pre``."""
    pre = "" if pre_text is None else f"<pre>{html.escape(pre_text, quote=False)}</pre>"
    return lxml.html.document_fromstring(
        "<html><head><title>"
        + html.escape(title)
        + "</title></head><body>"
        + pre
        + body_extra
        + "</body></html>"
    )


def by_class(element: Any, class_name: str) -> list[Any]:
    """Return descendants of ``element`` (inclusive) carrying ``class_name``."""
    return [el for el in element.iter() if class_name in el.classes]


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Force pytest-anyio to use asyncio (not trio)."""
    return "asyncio"


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    """Drop the cached settings so env overrides apply per test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def registry(monkeypatch: pytest.MonkeyPatch) -> CollectorRegistry:
    """Isolate Prometheus collectors per test."""
    reg = CollectorRegistry()
    monkeypatch.setattr(prom, "REGISTRY", reg)
    return reg


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def small_settings() -> Settings:
    """Tiny windows so virtualization is observable with small payloads."""
    return Settings(
        virtualization_threshold=10,
        initial_window=5,
        batch_size=7,
        frame_budget_ms=1000.0,
    )


@pytest.fixture
def attached() -> Generator[Callable[[Any], Any], None, None]:
    """Attach a rendered element to a fresh document body; returns the document."""

    def _attach(element: Any) -> Any:
        document = lxml.html.document_fromstring("<html><body></body></html>")
        document.body.append(element)
        return document

    yield _attach


@pytest.fixture
def make_doc() -> Callable[..., Any]:
    return make_document


@pytest.fixture
def classed() -> Callable[[Any, str], list[Any]]:
    return by_class
