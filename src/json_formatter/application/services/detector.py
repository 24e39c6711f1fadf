# src/json_formatter/application/services/detector.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""Raw JSON page detector.

Purpose:
    Decide whether a document is a raw JSON response rendered as plain text
    and, if so, hand back the parsed value.

Layer:
    application/services

Notes:
    - The policy is ordered and short-circuits; cheap structural checks
      always run before reading text, and the parse runs last.
    - Every outcome is returned as a value; nothing is raised.
"""

from __future__ import annotations

import re
import time
from typing import Any, Final

from json_formatter.config.settings import get_settings
from json_formatter.domain.entities.detection_result import (
    NOTE_BAD_START,
    NOTE_DONE,
    NOTE_MULTIPLE,
    NOTE_NO_CONTENT,
    NOTE_NO_PRE,
    NOTE_NOT_JSON,
    NOTE_NOT_RENDERED,
    NOTE_TEXTUAL,
    NOTE_TITLE,
    NOTE_TOO_LONG,
    Accepted,
    DetectionResult,
    Rejected,
)
from json_formatter.domain.services.json_parser import ParseFailed, parse
from json_formatter.infrastructure.dom.scan import (
    ScanOutcome,
    document_title,
    find_single_body_pre,
    is_rendered,
)
from json_formatter.infrastructure.logging.logger import get_json_logger
from json_formatter.infrastructure.observability.metrics import (
    get_detections_total,
    get_parse_seconds,
)

__all__ = ["detect", "is_too_long", "starts_like_json"]

logger = get_json_logger(__name__)

_FIRST_NON_BLANK: Final[re.Pattern[str]] = re.compile(r"[^\x20\x0a\x0d\x09]")
_JSON_OPENERS: Final[str] = '{["'

_SCAN_NOTES: Final[dict[ScanOutcome, str]] = {
    ScanOutcome.TEXTUAL: NOTE_TEXTUAL,
    ScanOutcome.MULTIPLE: NOTE_MULTIPLE,
    ScanOutcome.MISSING: NOTE_NO_PRE,
}

_OUTCOME_LABELS: Final[dict[str, str]] = {
    NOTE_TITLE: "title",
    NOTE_TEXTUAL: "textual",
    NOTE_MULTIPLE: "multiple",
    NOTE_NO_PRE: "no_pre",
    NOTE_NOT_RENDERED: "not_rendered",
    NOTE_NO_CONTENT: "no_content",
    NOTE_TOO_LONG: "too_long",
    NOTE_BAD_START: "bad_start",
    NOTE_NOT_JSON: "not_json",
    NOTE_DONE: "accepted",
}


def is_too_long(length: int, max_length: int) -> bool:
    """Return True when ``length`` exceeds ``max_length`` (equality is allowed)."""
    return length > max_length


def starts_like_json(text: str) -> bool:
    """Cheap lexical pre-check run before the full parse.

    Args:
        text: Raw candidate text.

    Returns:
        True when the first character other than space, tab, CR or LF is
        ``{``, ``[`` or ``"``.
    """
    match = _FIRST_NON_BLANK.search(text)
    return match is not None and match.group() in _JSON_OPENERS


def _finish(result: DetectionResult) -> DetectionResult:
    get_detections_total().labels(outcome=_OUTCOME_LABELS[result.note]).inc()
    logger.debug(
        "Detection finished",
        extra={
            "formatted": result.formatted,
            "note": result.note,
            "raw_length": result.raw_length,
        },
    )
    return result


def detect(document: Any, max_length: int | None = None) -> DetectionResult:
    """Apply the ordered eligibility policy to ``document``.

    Args:
        document: An ``lxml.html`` document (root element or element tree).
        max_length: Longest raw text accepted; defaults to the configured
            ``max_length``.

    Returns:
        :class:`Accepted` with the ``pre`` element and parsed value, or
        :class:`Rejected` with a human-readable note.
    """
    limit = max_length if max_length is not None else get_settings().max_length

    if document_title(document):
        return _finish(Rejected(NOTE_TITLE))

    found = find_single_body_pre(document)
    if isinstance(found, ScanOutcome):
        return _finish(Rejected(_SCAN_NOTES[found]))

    pre = found
    if not is_rendered(pre, document):
        return _finish(Rejected(NOTE_NOT_RENDERED))

    raw: str = pre.text_content()
    raw_length = len(raw)
    if not raw:
        return _finish(Rejected(NOTE_NO_CONTENT, raw_length))

    if is_too_long(raw_length, limit):
        return _finish(Rejected(NOTE_TOO_LONG, raw_length))

    if not starts_like_json(raw):
        return _finish(Rejected(NOTE_BAD_START, raw_length))

    started = time.perf_counter()
    outcome = parse(raw)
    get_parse_seconds().observe(time.perf_counter() - started)
    if isinstance(outcome, ParseFailed):
        logger.debug("Raw text failed to parse", extra={"reason": outcome.reason})
        return _finish(Rejected(NOTE_NOT_JSON, raw_length))

    return _finish(Accepted(NOTE_DONE, raw_length, pre, outcome.value))
