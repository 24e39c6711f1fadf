# src/json_formatter/adapters/controllers/page_formatter.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Controller: Page Formatter.

Synopsis:
    Host-facing entry point. Runs detection over a document and, when it is a
    raw JSON page, swaps the plain-text ``pre`` for the interactive tree while
    keeping the raw text available in a hidden container.

Layer:
    adapters/controllers
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final

from lxml.html import HtmlElement

from json_formatter.application.services.detector import detect
from json_formatter.application.services.expand_collapse import ExpandCollapseController
from json_formatter.application.services.renderer import TreeBuilder
from json_formatter.application.services.virtualizer import Virtualizer
from json_formatter.config.settings import Settings, get_settings
from json_formatter.domain.entities.detection_result import Accepted, Rejected
from json_formatter.domain.entities.render_node import RenderNode
from json_formatter.domain.exceptions.base import RenderFault
from json_formatter.infrastructure.dom import templates as t
from json_formatter.infrastructure.logging.logger import get_json_logger, set_document_context
from json_formatter.infrastructure.scheduling.scheduler import AsyncioScheduler, Scheduler

__all__ = ["PARSED_CONTAINER_ID", "RAW_CONTAINER_ID", "FormattedPage", "format_document"]

logger = get_json_logger(__name__)

RAW_CONTAINER_ID: Final[str] = "jsonFormatterRaw"
PARSED_CONTAINER_ID: Final[str] = "jsonFormatterParsed"


@dataclass(slots=True)
class FormattedPage:
    """A document that has been switched to the tree view.

    Attributes:
        result: The detector's acceptance.
        root: Root render node of the tree.
        virtualizer: Drives the remaining lazy windows.
        controller: Expand/collapse state of the tree.
        raw_container: ``div#jsonFormatterRaw`` holding the original ``pre``.
        parsed_container: ``div#jsonFormatterParsed`` holding the tree.
    """

    result: Accepted
    root: RenderNode
    virtualizer: Virtualizer
    controller: ExpandCollapseController
    raw_container: HtmlElement
    parsed_container: HtmlElement

    @property
    def showing_raw(self) -> bool:
        return self.parsed_container.get("hidden") is not None

    def show_raw(self, raw: bool = True) -> None:
        """Show the raw text (``raw=True``) or the parsed tree."""
        shown, hidden = (
            (self.raw_container, self.parsed_container)
            if raw
            else (self.parsed_container, self.raw_container)
        )
        shown.attrib.pop("hidden", None)
        hidden.set("hidden", "")


def format_document(
    document: Any,
    *,
    settings: Settings | None = None,
    scheduler: Scheduler | None = None,
    max_length: int | None = None,
    document_id: str | None = None,
) -> Rejected | FormattedPage:
    """Detect and, when eligible, format ``document`` in place.

    Args:
        document: An ``lxml.html`` document (root element or element tree).
        settings: Configuration; defaults to :func:`get_settings`.
        scheduler: Scheduler for virtualization batches; defaults to an
            :class:`AsyncioScheduler` on the running loop.
        max_length: Overrides ``settings.max_length`` for this call.
        document_id: Identifier attached to every log record of this call.

    Returns:
        The :class:`Rejected` result (document untouched), or a
        :class:`FormattedPage`.

    Raises:
        RenderFault: If the parsed value cannot be rendered; the document is
            left untouched.
    """
    cfg = settings or get_settings()
    if document_id is not None:
        set_document_context(document_id)

    result = detect(document, max_length if max_length is not None else cfg.max_length)
    if isinstance(result, Rejected):
        logger.info("Document left as is", extra={"note": result.note})
        return result

    try:
        root = TreeBuilder(cfg.virtualization_threshold).render(result.parsed)
    except RenderFault:
        logger.exception("Rendering failed; document left as is")
        raise

    pre: HtmlElement = result.element
    body = pre.getparent()
    position = body.index(pre)

    raw_container = t.container(RAW_CONTAINER_ID, hidden=True)
    parsed_container = t.container(PARSED_CONTAINER_ID)
    # drop_tree keeps the pre's tail text in place.
    pre.drop_tree()
    pre.tail = None
    raw_container.append(pre)
    parsed_container.append(root.element)
    body.insert(position, parsed_container)
    body.insert(position + 1, raw_container)

    virtualizer = Virtualizer(document, scheduler or AsyncioScheduler(), settings=cfg)
    controller = ExpandCollapseController(virtualizer)
    controller.bind(root)
    virtualizer.mount(root)

    logger.info(
        "Document formatted",
        extra={"raw_length": result.raw_length, "pending_windows": virtualizer.pending},
    )
    return FormattedPage(
        result=result,
        root=root,
        virtualizer=virtualizer,
        controller=controller,
        raw_container=raw_container,
        parsed_container=parsed_container,
    )
