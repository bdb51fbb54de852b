"""Utilities for rendering run progress in the CLI."""

from __future__ import annotations

from typing import List, Optional

from schemaboard.db.models import RunItem
from schemaboard.pipeline.orchestrator import RunSummary

_COLUMNS = ("row", "path", "result", "html", "schema", "error")


def _cell(value: Optional[object]) -> str:
    if value is None:
        return "-"
    return getattr(value, "value", str(value))


def render_items(items: List[RunItem]) -> str:
    """Render run items as a fixed-width table, one row per item."""
    rows = [
        (
            str(i.row_number),
            i.path or "-",
            _cell(i.result),
            _cell(i.html_status),
            _cell(i.schema_status),
            i.error_message or "",
        )
        for i in items
    ]
    widths = [
        max([len(header)] + [len(r[col]) for r in rows])
        for col, header in enumerate(_COLUMNS)
    ]

    def _line(cells: tuple) -> str:
        return "  ".join(c.ljust(w) for c, w in zip(cells, widths)).rstrip()

    lines = [_line(_COLUMNS), _line(tuple("-" * w for w in widths))]
    lines.extend(_line(r) for r in rows)
    return "\n".join(lines)


def render_summary(summary: RunSummary) -> str:
    return (
        f"{summary.status}: {summary.total} rows, "
        f"{summary.created} created, {summary.updated} updated, {summary.errors} errors | "
        f"html {summary.html_success} ok / {summary.html_failed} failed | "
        f"schema {summary.schema_success} ok / {summary.schema_failed} failed"
    )
