# tests/unit/application/services/test_virtualizer.py
from __future__ import annotations

from collections.abc import Callable
from typing import Any

import anyio
import pytest
from prometheus_client import CollectorRegistry

from json_formatter.application.services.renderer import TreeBuilder
from json_formatter.application.services.virtualizer import Virtualizer
from json_formatter.config.settings import Settings
from json_formatter.domain.entities.render_node import RenderNode
from json_formatter.domain.exceptions.base import RenderFault
from json_formatter.infrastructure.dom import templates as t
from json_formatter.infrastructure.scheduling.scheduler import AsyncioScheduler

Attach = Callable[[Any], Any]


def _mounted(
    value: Any,
    settings: Settings,
    scheduler: Any,
    attached: Attach,
) -> tuple[RenderNode, Virtualizer, Any]:
    root = TreeBuilder(settings.virtualization_threshold).render(value)
    document = attached(root.element)
    virtualizer = Virtualizer(document, scheduler, settings=settings)
    virtualizer.mount(root)
    return root, virtualizer, document


def _assert_in_order(node: RenderNode) -> None:
    assert [child.index for child in node.children] == list(range(node.materialized))
    assert list(node.group) == [child.element for child in node.children]


def test_initial_window_is_bounded(small_settings, scheduler, attached) -> None:
    root, virtualizer, _ = _mounted(list(range(50)), small_settings, scheduler, attached)

    assert root.materialized == small_settings.initial_window
    assert virtualizer.pending == 1
    assert len(scheduler.queue) == 1
    _assert_in_order(root)


@pytest.mark.parametrize("size", [5_000, 50_000])
def test_initial_work_does_not_grow_with_child_count(size: int, scheduler, attached) -> None:
    settings = Settings()
    root, _, _ = _mounted(list(range(size)), settings, scheduler, attached)

    assert root.materialized == settings.initial_window
    assert len(root.group) == settings.initial_window
    assert len(scheduler.queue) == 1


def test_one_batch_per_turn_until_complete(small_settings, scheduler, attached) -> None:
    root, virtualizer, _ = _mounted(list(range(50)), small_settings, scheduler, attached)

    scheduler.run_next()
    assert root.materialized == 5 + 7
    assert len(scheduler.queue) == 1

    turns = scheduler.run_all()
    assert turns == 6
    assert root.is_complete
    assert virtualizer.pending == 0
    _assert_in_order(root)
    assert root.group[-1].text_content() == "49"
    assert root.group[0].text_content() == "0,"


def test_frame_budget_stops_a_batch_early(scheduler, attached) -> None:
    settings = Settings(
        virtualization_threshold=10,
        initial_window=1,
        batch_size=10_000,
        frame_budget_ms=0.000001,
    )
    root, _, _ = _mounted(list(range(5_000)), settings, scheduler, attached)

    scheduler.run_next()
    assert 1 < root.materialized < 5_000
    assert len(scheduler.queue) == 1
    scheduler.run_all()
    assert root.is_complete
    _assert_in_order(root)


def test_reveal_opens_a_window_for_an_unmounted_node(small_settings, scheduler, attached) -> None:
    root = TreeBuilder(small_settings.virtualization_threshold).render(list(range(50)))
    virtualizer = Virtualizer(attached(root.element), scheduler, settings=small_settings)

    revealed = virtualizer.reveal(root, 40)

    assert revealed.index == 40
    assert root.materialized == 41
    _assert_in_order(root)

    scheduler.run_all()
    assert root.is_complete
    _assert_in_order(root)


def test_reveal_uses_the_mounted_window(small_settings, scheduler, attached, registry) -> None:
    root, virtualizer, _ = _mounted(list(range(50)), small_settings, scheduler, attached)

    assert virtualizer.reveal(root, 2) is root.children[2]
    assert virtualizer.reveal(root, 20).index == 20
    assert root.materialized == 21
    assert (
        registry.get_sample_value(
            "json_formatter_entries_materialized_total", {"phase": "reveal"}
        )
        == 16.0
    )


def test_reveal_rejects_out_of_range_index(small_settings, scheduler, attached) -> None:
    root, virtualizer, _ = _mounted(list(range(50)), small_settings, scheduler, attached)
    with pytest.raises(IndexError):
        virtualizer.reveal(root, 50)
    with pytest.raises(IndexError):
        virtualizer.reveal(root, -1)


def test_every_index_is_reachable(small_settings, scheduler, attached) -> None:
    root, virtualizer, _ = _mounted(list(range(300)), small_settings, scheduler, attached)
    for index in (299, 0, 150, 298):
        assert virtualizer.reveal(root, index).element.text_content().startswith(str(index))
    assert root.is_complete
    _assert_in_order(root)


def test_detached_container_cancels_silently(
    small_settings, scheduler, attached, registry: CollectorRegistry
) -> None:
    root, virtualizer, document = _mounted(list(range(50)), small_settings, scheduler, attached)
    document.body.remove(root.element)

    scheduler.run_all()

    window = virtualizer.window(root)
    assert window is not None and window.cancelled
    assert root.materialized == 5
    assert virtualizer.pending == 0
    assert registry.get_sample_value("json_formatter_batches_cancelled_total") == 1.0


def test_scheduling_failure_shows_truncation(small_settings, scheduler, attached) -> None:
    scheduler.fail = True
    root, virtualizer, _ = _mounted(list(range(50)), small_settings, scheduler, attached)

    marker = root.group[-1]
    assert t.CLS_TRUNCATED in marker.classes
    assert marker.text == "… 45 more items"
    assert virtualizer.pending == 0

    scheduler.fail = False
    virtualizer.resume(root)
    assert all(t.CLS_TRUNCATED not in el.classes for el in root.group)
    assert virtualizer.pending == 1

    scheduler.run_all()
    assert root.is_complete
    _assert_in_order(root)


def test_scheduler_failure_mid_way_keeps_materialized_entries(
    small_settings, scheduler, attached
) -> None:
    root, virtualizer, _ = _mounted(list(range(50)), small_settings, scheduler, attached)
    scheduler.fail = True
    scheduler.run_next()

    assert root.materialized == 12
    assert root.group[-1].text == "… 38 more items"

    # Revealing clears the marker and keeps the order intact.
    virtualizer.reveal(root, 12)
    assert root.materialized == 13
    _assert_in_order(root)


def test_resume_is_idempotent(small_settings, scheduler, attached) -> None:
    root, virtualizer, _ = _mounted(list(range(50)), small_settings, scheduler, attached)
    virtualizer.resume(root)
    virtualizer.resume(root)
    assert len(scheduler.queue) == 1


def test_nested_lazy_composites_are_queued_not_opened(
    small_settings, scheduler, attached, registry
) -> None:
    value = [[list(range(30)) for _ in range(20)] for _ in range(20)]
    root, virtualizer, _ = _mounted(value, small_settings, scheduler, attached)

    assert root.materialized == 5
    assert all(child.materialized == 0 for child in root.children)
    assert virtualizer.pending == 6
    assert (
        registry.get_sample_value(
            "json_formatter_entries_materialized_total", {"phase": "initial"}
        )
        == 5.0
    )

    scheduler.run_next()
    assert sum(node.materialized for node in root.iter_nodes()) == 5 + small_settings.batch_size

    scheduler.run_all()
    assert all(node.is_complete for node in root.iter_nodes())
    assert sum(1 for _ in root.iter_nodes()) == 1 + 20 + 20 * 20 + 20 * 20 * 30
    for node in root.iter_nodes():
        if node.group is not None:
            _assert_in_order(node)


def _deeply_nested(depth: int) -> list[Any]:
    value: list[Any] = []
    for _ in range(depth):
        value = [value]
    return value


@pytest.mark.parametrize("bad", [_deeply_nested(50_000), {1, 2}], ids=["recursion", "unknown"])
def test_producer_fault_in_a_batch_shows_truncation(
    bad: Any, small_settings, scheduler, attached
) -> None:
    value: list[Any] = list(range(30))
    value[20] = bad
    root, virtualizer, _ = _mounted(value, small_settings, scheduler, attached)

    scheduler.run_all()

    window = virtualizer.window(root)
    assert window is not None and window.failed
    assert [child.index for child in root.children] == list(range(19))
    marker = root.group[-1]
    assert t.CLS_TRUNCATED in marker.classes
    assert marker.text == "… 11 more items"
    assert virtualizer.pending == 0
    assert scheduler.queue == []

    # The window stays stopped: no retry loop, and the marker remains.
    virtualizer.resume(root)
    virtualizer.flush()
    assert scheduler.queue == []
    assert root.materialized == 19
    assert root.group[-1] is marker


def test_reveal_past_a_faulty_entry_raises(small_settings, scheduler, attached) -> None:
    value: list[Any] = list(range(30))
    value[8] = {1, 2}
    root, virtualizer, _ = _mounted(value, small_settings, scheduler, attached)

    assert virtualizer.reveal(root, 6).index == 6
    with pytest.raises(RenderFault):
        virtualizer.reveal(root, 12)
    assert root.materialized == 7
    assert t.CLS_TRUNCATED in root.group[-1].classes


@pytest.mark.anyio
async def test_wait_idle_returns_after_a_producer_fault(small_settings, attached) -> None:
    value: list[Any] = list(range(300))
    value[150] = _deeply_nested(50_000)
    root = TreeBuilder(small_settings.virtualization_threshold).render(value)
    virtualizer = Virtualizer(attached(root.element), AsyncioScheduler(), settings=small_settings)
    virtualizer.mount(root)

    with anyio.fail_after(5):
        await virtualizer.wait_idle()

    assert virtualizer.pending == 0
    assert root.materialized < 150
    assert root.group[-1].text == f"… {300 - root.materialized} more items"


def test_flush_completes_everything(small_settings, scheduler, attached) -> None:
    value = {"big": list(range(40)), "nested": [list(range(15)) for _ in range(12)]}
    root, virtualizer, _ = _mounted(value, small_settings, scheduler, attached)

    virtualizer.flush()

    assert all(node.is_complete for node in root.iter_nodes())
    assert virtualizer.pending == 0
    # Continuations left in the queue find nothing to do.
    scheduler.run_all()
    assert sum(1 for _ in root.iter_nodes()) == 1 + 1 + 40 + 1 + 12 + 12 * 15


def test_subscribers_see_materialized_children(small_settings, scheduler, attached) -> None:
    seen: list[int] = []
    root = TreeBuilder(small_settings.virtualization_threshold).render(list(range(20)))
    virtualizer = Virtualizer(attached(root.element), scheduler, settings=small_settings)
    virtualizer.subscribe(lambda nodes: seen.extend(node.index for node in nodes))

    virtualizer.mount(root)
    scheduler.run_all()

    assert seen == list(range(20))


@pytest.mark.anyio
async def test_wait_idle_on_the_running_loop(small_settings, attached) -> None:
    root = TreeBuilder(small_settings.virtualization_threshold).render(list(range(500)))
    virtualizer = Virtualizer(attached(root.element), AsyncioScheduler(), settings=small_settings)
    virtualizer.mount(root)
    assert virtualizer.pending == 1

    await virtualizer.wait_idle()

    assert virtualizer.pending == 0
    assert root.is_complete
    _assert_in_order(root)


@pytest.mark.anyio
async def test_wait_idle_returns_immediately_when_nothing_is_pending(
    small_settings, scheduler, attached
) -> None:
    root, virtualizer, _ = _mounted([1, 2, 3], small_settings, scheduler, attached)
    await virtualizer.wait_idle()
    assert root.is_complete
