"""Operations on the ``runs`` and ``run_items`` tables.

A Run owns its RunItems; items are processed in ``row_number`` order and
mutated one field at a time as each pipeline stage completes.
"""

from __future__ import annotations

import sqlite3
import uuid
from enum import Enum
from typing import Any, Optional, Sequence

from schemaboard.db.connection import persistence_errors
from schemaboard.db.models import (
    ItemResult,
    RowInput,
    Run,
    RunItem,
    RunStatus,
    StageStatus,
    utcnow_iso,
)


# Item columns the pipeline is allowed to write.
_ITEM_UPDATABLE = {"page_id", "result", "html_status", "schema_status", "error_message"}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_run(row: sqlite3.Row) -> Run:
    return Run(
        id=row["id"],
        label=row["label"],
        total_rows=row["total_rows"],
        status=RunStatus(row["status"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_item(row: sqlite3.Row) -> RunItem:
    return RunItem(
        id=row["id"],
        run_id=row["run_id"],
        row_number=row["row_number"],
        domain=row["domain"],
        path=row["path"],
        page_type=row["page_type"],
        category=row["category"],
        page_id=row["page_id"],
        result=ItemResult(row["result"]) if row["result"] else None,
        html_status=StageStatus(row["html_status"]) if row["html_status"] else None,
        schema_status=StageStatus(row["schema_status"]) if row["schema_status"] else None,
        error_message=row["error_message"],
        created_at=row["created_at"],
    )


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------

def create_run(
    conn: sqlite3.Connection,
    rows: Sequence[RowInput],
    label: Optional[str] = None,
) -> Run:
    """Create a ``pending`` run with one item per row, in a single transaction.

    Row numbers are assigned 1..N in the order *rows* is given.
    """
    run_id = str(uuid.uuid4())
    now = utcnow_iso()

    with persistence_errors("create run"):
        with conn:
            conn.execute(
                """
                INSERT INTO runs (id, label, total_rows, status, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (run_id, label, len(rows), RunStatus.PENDING.value, now, now),
            )
            conn.executemany(
                """
                INSERT INTO run_items (id, run_id, row_number, domain, path,
                                       page_type, category, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        str(uuid.uuid4()),
                        run_id,
                        number,
                        row.domain,
                        row.path,
                        row.page_type,
                        row.category,
                        now,
                    )
                    for number, row in enumerate(rows, start=1)
                ],
            )

    return get_run(conn, run_id)  # type: ignore[return-value]


def get_run(conn: sqlite3.Connection, run_id: str) -> Optional[Run]:
    """Fetch a single run by its UUID.  Returns ``None`` if not found."""
    with persistence_errors("load run"):
        row = conn.execute("SELECT * FROM runs WHERE id = ?", (run_id,)).fetchone()
    return _row_to_run(row) if row else None


def list_runs(conn: sqlite3.Connection) -> list[Run]:
    """Return all runs, most recent first."""
    with persistence_errors("list runs"):
        rows = conn.execute("SELECT * FROM runs ORDER BY created_at DESC").fetchall()
    return [_row_to_run(r) for r in rows]


def set_run_status(conn: sqlite3.Connection, run_id: str, status: RunStatus) -> None:
    """Move a run to *status* and refresh ``updated_at``."""
    with persistence_errors(f"mark run {status.value}"):
        with conn:
            conn.execute(
                "UPDATE runs SET status = ?, updated_at = ? WHERE id = ?",
                (status.value, utcnow_iso(), run_id),
            )


# ---------------------------------------------------------------------------
# Run items
# ---------------------------------------------------------------------------

def list_run_items(conn: sqlite3.Connection, run_id: str) -> list[RunItem]:
    """Return the items of *run_id* ordered by ``row_number`` ascending."""
    with persistence_errors("load run items"):
        rows = conn.execute(
            "SELECT * FROM run_items WHERE run_id = ? ORDER BY row_number ASC",
            (run_id,),
        ).fetchall()
    return [_row_to_item(r) for r in rows]


def get_run_item(conn: sqlite3.Connection, item_id: str) -> Optional[RunItem]:
    with persistence_errors("load run item"):
        row = conn.execute("SELECT * FROM run_items WHERE id = ?", (item_id,)).fetchone()
    return _row_to_item(row) if row else None


def update_run_item(conn: sqlite3.Connection, item_id: str, **kwargs: Any) -> None:
    """Write one or more pipeline-owned fields on a run item.

    Allowed keyword arguments: ``page_id``, ``result``, ``html_status``,
    ``schema_status``, ``error_message``.  Enum values are stored by value.

    Raises:
        ValueError: If an unknown field is given or no field is given.
        PersistenceError: If the write fails.
    """
    updates: dict[str, Any] = {}
    for key, value in kwargs.items():
        if key not in _ITEM_UPDATABLE:
            raise ValueError(f"Cannot update field {key!r}")
        updates[key] = value.value if isinstance(value, Enum) else value

    if not updates:
        raise ValueError("No valid fields provided to update_run_item()")

    set_clause = ", ".join(f"{col} = ?" for col in updates)
    values = list(updates.values()) + [item_id]

    with persistence_errors("update run item"):
        with conn:
            conn.execute(
                f"UPDATE run_items SET {set_clause} WHERE id = ?", values  # noqa: S608
            )
