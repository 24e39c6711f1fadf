# src/json_formatter/tasks/cli.py
# Copyright (c) JSON Formatter.
# SPDX-License-Identifier: MIT
"""JSON Formatter CLI: run detection and rendering over saved HTML pages.

Commands:
    detect   Report whether an HTML page is a raw JSON page.
    render   Replace the raw JSON of a page with the formatted tree.

Environment:
    JSON_FORMATTER_MAX_LENGTH   Longest raw text the detector will parse.
    JSON_FORMATTER_LOG_LEVEL    Root log level.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import lxml.html
import typer

from json_formatter.adapters.controllers.page_formatter import FormattedPage, format_document
from json_formatter.application.services.detector import detect
from json_formatter.config.settings import get_settings
from json_formatter.domain.entities.detection_result import Rejected
from json_formatter.infrastructure.logging.logger import (
    configure_root_logging,
    get_json_logger,
    set_document_context,
)
from json_formatter.infrastructure.scheduling.scheduler import AsyncioScheduler

log = get_json_logger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def main() -> None:
    """Format raw JSON pages as collapsible trees."""
    configure_root_logging(get_settings().log_level)


@app.command("detect")
def detect_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="HTML file."),  # noqa: B008
    max_length: int | None = typer.Option(  # noqa: B008
        None, min=1, help="Override the configured maximum raw length."
    ),
) -> None:
    """Print the detection note and raw length; exit 1 when the page is rejected."""
    set_document_context(str(path))
    result = detect(lxml.html.parse(str(path)), max_length)
    typer.echo(f"{result.note}\trawLength={result.raw_length}")
    if isinstance(result, Rejected):
        raise typer.Exit(code=1)


@app.command("render")
def render_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="HTML file."),  # noqa: B008
    output: Path | None = typer.Option(  # noqa: B008
        None, "--output", "-o", dir_okay=False, help="Write here instead of stdout."
    ),
) -> None:
    """Format the page, finish every virtualization window, and write the HTML."""
    tree = lxml.html.parse(str(path))

    async def _run() -> Rejected | FormattedPage:
        page = format_document(tree, scheduler=AsyncioScheduler(), document_id=str(path))
        if isinstance(page, FormattedPage):
            await page.virtualizer.wait_idle()
            # Windows left truncated by a scheduling failure.
            page.virtualizer.flush()
        return page

    page = asyncio.run(_run())
    if isinstance(page, Rejected):
        typer.echo(f"Not formatted: {page.note}", err=True)
        raise typer.Exit(code=1)

    html = lxml.html.tostring(tree, encoding="unicode")
    if output is None:
        typer.echo(html)
    else:
        output.write_text(html, encoding="utf-8")
        log.info("Rendered page written", extra={"output": str(output)})


if __name__ == "__main__":  # pragma: no cover
    app()
