"""Batch intake: turn spreadsheet rows into a pending run.

CSV layout
----------
Columns ``domain, path, page_type, category``.  A header row is detected
when it names all four columns (any order, case-insensitive); without one
the columns are read positionally in that order.  Blank lines are skipped,
cells are trimmed and absent cells become ``None`` so the orchestrator can
report them per row.

Pasted grid
-----------
Tab-separated lines copied from a spreadsheet, always headerless, with the
path (or full URL) first: ``path, domain, page_type, category``.
"""

from __future__ import annotations

import csv
import io
import sqlite3
from datetime import date
from typing import Optional, Sequence

from schemaboard.db.models import RowInput, Run
from schemaboard.db.runs import create_run
from schemaboard.errors import ValidationError
from schemaboard.logger import logger

REQUIRED_COLUMNS = ("domain", "path", "page_type", "category")
GRID_COLUMNS = ("path", "domain", "page_type", "category")


def _cell(values: list[str], index: Optional[int]) -> Optional[str]:
    if index is None or index >= len(values):
        return None
    return values[index].strip() or None


def parse_csv(text: str) -> list[RowInput]:
    """Parse CSV *text* into row inputs, in file order.

    Raises:
        ValidationError: If the text holds no data rows.
    """
    records = [
        row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)
    ]
    if not records:
        raise ValidationError("CSV file is empty")

    first = [cell.strip().lower() for cell in records[0]]
    if all(column in first for column in REQUIRED_COLUMNS):
        positions = {column: first.index(column) for column in REQUIRED_COLUMNS}
        records = records[1:]
    else:
        positions = {column: i for i, column in enumerate(REQUIRED_COLUMNS)}

    if not records:
        raise ValidationError("CSV file is empty")

    return [
        RowInput(**{column: _cell(values, positions[column]) for column in REQUIRED_COLUMNS})
        for values in records
    ]


def parse_pasted_grid(text: str) -> list[RowInput]:
    """Parse tab-separated spreadsheet lines into row inputs, in order.

    Raises:
        ValidationError: If the text holds no non-blank lines.
    """
    lines = [line for line in text.replace("\r", "").split("\n") if line.strip()]
    if not lines:
        raise ValidationError("Pasted grid is empty")

    return [
        RowInput(**{column: _cell(cells, i) for i, column in enumerate(GRID_COLUMNS)})
        for cells in (line.split("\t") for line in lines)
    ]


def create_batch(
    conn: sqlite3.Connection,
    rows: Sequence[RowInput],
    label: Optional[str] = None,
    source: str = "CSV",
) -> Run:
    """Create a ``pending`` run holding *rows* as items numbered from 1.

    Rows are stored as given, including incomplete ones; validation happens
    per row when the run is processed.  Without a *label* the run is named
    ``"<source> Batch <date>"``.
    """
    if not rows:
        raise ValidationError("A batch needs at least one row")

    run = create_run(conn, rows, label=label or f"{source} Batch {date.today().isoformat()}")
    logger.info("Created run {} ({!r}) with {} rows", run.id, run.label, run.total_rows)
    return run
