"""Run orchestrator: drives every item of a batch through the pipeline.

Per run::

    pending → running → completed      (failed only on a pipeline-level error)

Per item, strictly one after another in ``row_number`` order::

    validate ─┬─> result=error                          (missing fields)
              └─> reconcile ─┬─> result=error           (reconcile failed)
                             └─> result=created|updated
                                   → fetch    → html_status=success|failed
                                   → generate → schema_status=success|failed

Every field is persisted as soon as its stage settles, so a run can be
inspected mid-flight.  :func:`process_item` never raises: whatever goes
wrong inside one item ends up in that item's fields and the run moves on.
"""

from __future__ import annotations

import sqlite3
from dataclasses import asdict, dataclass
from typing import Any, Callable, Iterable, Optional, Union

from schemaboard.crawler.fetcher import PageFetcher
from schemaboard.db.models import ItemResult, RunItem, RunStatus, StageStatus
from schemaboard.db.runs import get_run, list_run_items, set_run_status, update_run_item
from schemaboard.errors import NotFoundError, PersistenceError
from schemaboard.logger import logger
from schemaboard.pipeline.generation import SchemaGenerator
from schemaboard.pipeline.reconciler import reconcile


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

@dataclass
class ItemOutcome:
    """What happened to one item during this invocation."""

    item_id: str
    row_number: int
    result: Optional[ItemResult] = None
    page_id: Optional[str] = None
    html_status: Optional[StageStatus] = None
    schema_status: Optional[StageStatus] = None
    error_message: Optional[str] = None


@dataclass
class RunSummary:
    run_id: str
    status: str
    total: int = 0
    created: int = 0
    updated: int = 0
    errors: int = 0
    html_success: int = 0
    html_failed: int = 0
    schema_success: int = 0
    schema_failed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def summarize_items(
    run_id: str,
    status: RunStatus,
    items: Iterable[Union[RunItem, ItemOutcome]],
) -> RunSummary:
    """Count item results and stage statuses for progress reporting."""
    summary = RunSummary(run_id=run_id, status=status.value)
    for item in items:
        summary.total += 1
        if item.result == ItemResult.CREATED:
            summary.created += 1
        elif item.result == ItemResult.UPDATED:
            summary.updated += 1
        elif item.result == ItemResult.ERROR:
            summary.errors += 1

        if item.html_status == StageStatus.SUCCESS:
            summary.html_success += 1
        elif item.html_status == StageStatus.FAILED:
            summary.html_failed += 1

        if item.schema_status == StageStatus.SUCCESS:
            summary.schema_success += 1
        elif item.schema_status == StageStatus.FAILED:
            summary.schema_failed += 1
    return summary


# ---------------------------------------------------------------------------
# Per-item state machine
# ---------------------------------------------------------------------------

def _record(conn: sqlite3.Connection, outcome: ItemOutcome, **fields: Any) -> None:
    """Persist *fields* on the item, then mirror them on *outcome*."""
    update_run_item(conn, outcome.item_id, **fields)
    for key, value in fields.items():
        setattr(outcome, key, value)


def _run_stage(name: str, path: str, call: Callable[[], Any]) -> StageStatus:
    try:
        call()
    except Exception as exc:
        logger.error("{} failed for {}: {}", name, path, exc)
        return StageStatus.FAILED
    logger.info("{} success for {}", name, path)
    return StageStatus.SUCCESS


def _advance(
    conn: sqlite3.Connection,
    item: RunItem,
    outcome: ItemOutcome,
    fetcher: PageFetcher,
    generator: SchemaGenerator,
) -> None:
    missing = item.row.missing_fields()
    if missing:
        _record(
            conn,
            outcome,
            result=ItemResult.ERROR,
            error_message=f"Missing required field(s): {', '.join(missing)}",
        )
        return

    # Reconciliation errors end the row at the item boundary in process_item.
    resolved = reconcile(
        conn,
        domain=item.domain,  # type: ignore[arg-type]
        raw_path=item.path,  # type: ignore[arg-type]
        page_type=item.page_type,  # type: ignore[arg-type]
        category=item.category,  # type: ignore[arg-type]
    )
    _record(
        conn,
        outcome,
        result=ItemResult.CREATED if resolved.is_new else ItemResult.UPDATED,
        page_id=resolved.page_id,
    )

    page_id = resolved.page_id
    html_status = _run_stage("HTML fetch", item.path, lambda: fetcher.fetch(page_id))  # type: ignore[arg-type]
    _record(conn, outcome, html_status=html_status)

    schema_status = _run_stage(
        "Schema generation", item.path, lambda: generator.generate(page_id)  # type: ignore[arg-type]
    )
    _record(conn, outcome, schema_status=schema_status)


def process_item(
    conn: sqlite3.Connection,
    item: RunItem,
    fetcher: PageFetcher,
    generator: SchemaGenerator,
) -> ItemOutcome:
    """Take one run item as far through the pipeline as it will go.

    Never raises.  An unexpected error marks the item ``error`` unless a
    result was already recorded, in which case only ``error_message`` is
    written so ``result`` is set at most once.
    """
    outcome = ItemOutcome(item_id=item.id, row_number=item.row_number)
    logger.info("Processing row {}: {}", item.row_number, item.path)

    try:
        _advance(conn, item, outcome, fetcher, generator)
    except Exception as exc:
        logger.exception("Error processing row {}", item.row_number)
        message = str(exc) or exc.__class__.__name__
        fields: dict[str, Any] = {"error_message": message}
        if outcome.result is None:
            fields["result"] = ItemResult.ERROR
        try:
            _record(conn, outcome, **fields)
        except Exception:
            logger.exception("Could not record the error for row {}", item.row_number)
            for key, value in fields.items():
                setattr(outcome, key, value)

    return outcome


# ---------------------------------------------------------------------------
# Run driver
# ---------------------------------------------------------------------------

def _mark_failed(conn: sqlite3.Connection, run_id: str) -> None:
    try:
        set_run_status(conn, run_id, RunStatus.FAILED)
    except PersistenceError:
        logger.exception("Could not mark run {} as failed", run_id)


def run_pipeline(
    conn: sqlite3.Connection,
    run_id: str,
    fetcher: PageFetcher,
    generator: SchemaGenerator,
) -> RunSummary:
    """Process every item of *run_id* in row order and complete the run.

    Item failures never stop the sweep; ``completed`` means every row was
    attempted, not that every row succeeded.  Re-invoking on a finished run
    re-attempts all stages, which is safe because reconciliation reuses
    existing pages and fetching only refreshes crawl metadata.

    Raises:
        NotFoundError: If the run does not exist.
        PersistenceError: If the run's items cannot be loaded or its final
            status cannot be written.  The run is marked ``failed`` first
            when possible.
    """
    run = get_run(conn, run_id)
    if run is None:
        raise NotFoundError(f"Run not found: {run_id!r}")

    logger.info("Processing run {} ({!r})", run.id, run.label)
    set_run_status(conn, run.id, RunStatus.RUNNING)

    try:
        items = list_run_items(conn, run.id)
        logger.info("Found {} items to process", len(items))

        outcomes: list[ItemOutcome] = []
        for item in items:
            outcomes.append(process_item(conn, item, fetcher, generator))

        set_run_status(conn, run.id, RunStatus.COMPLETED)
    except Exception:
        logger.exception("Run {} aborted", run.id)
        _mark_failed(conn, run.id)
        raise

    summary = summarize_items(run.id, RunStatus.COMPLETED, outcomes)
    logger.info(
        "Run {} completed: {} created, {} updated, {} errors",
        run.id,
        summary.created,
        summary.updated,
        summary.errors,
    )
    return summary
