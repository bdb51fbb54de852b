"""Batch ingestion ("WIZmode") endpoints.

Routes
------
POST /wizmode/runs          Body: {"label": "...", "rows": [{domain, path, page_type, category}]}
POST /wizmode/runs/csv      Body: {"label": "...", "csv": "domain,path,page_type,category\\n..."}
POST /wizmode/runs/paste    Body: {"label": "...", "text": "path\\tdomain\\tpage_type\\tcategory\\n..."}
GET  /wizmode/runs          List runs, most recent first
GET  /wizmode/runs/{id}     Run, its items in row order, and progress counts
POST /wizmode/process       Body: {"run_id": "..."}  → process the run synchronously

``/process`` answers ``{"success": true}`` once every row has been
attempted; row-level failures are visible only in the items.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from schemaboard.api.responses import error_response, from_exception
from schemaboard.crawler.fetcher import PageFetcher
from schemaboard.db.models import RowInput, Run, RunItem
from schemaboard.db.runs import get_run, list_run_items, list_runs
from schemaboard.db.settings_store import load_fetch_config
from schemaboard.errors import SchemaBoardError
from schemaboard.logger import logger
from schemaboard.pipeline.intake import create_batch, parse_csv, parse_pasted_grid
from schemaboard.pipeline.orchestrator import run_pipeline, summarize_items

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class RowModel(BaseModel):
    domain: Optional[str] = None
    path: Optional[str] = None
    page_type: Optional[str] = None
    category: Optional[str] = None


class RowsBatchRequest(BaseModel):
    label: Optional[str] = None
    rows: list[RowModel]


class CsvBatchRequest(BaseModel):
    label: Optional[str] = None
    csv: str


class PastedBatchRequest(BaseModel):
    label: Optional[str] = None
    text: str


class ProcessRequest(BaseModel):
    run_id: Optional[str] = None


class RunResponse(BaseModel):
    id: str
    label: Optional[str]
    total_rows: int
    status: str
    created_at: str
    updated_at: str


class RunItemResponse(BaseModel):
    id: str
    row_number: int
    domain: Optional[str]
    path: Optional[str]
    page_type: Optional[str]
    category: Optional[str]
    page_id: Optional[str]
    result: Optional[str]
    html_status: Optional[str]
    schema_status: Optional[str]
    error_message: Optional[str]


class RunDetailResponse(BaseModel):
    run: RunResponse
    items: list[RunItemResponse]
    summary: dict[str, Any]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _value(status: Any) -> Optional[str]:
    return status.value if status is not None else None


def _run_response(run: Run) -> dict[str, Any]:
    return {
        "id": run.id,
        "label": run.label,
        "total_rows": run.total_rows,
        "status": run.status.value,
        "created_at": run.created_at,
        "updated_at": run.updated_at,
    }


def _item_response(item: RunItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "row_number": item.row_number,
        "domain": item.domain,
        "path": item.path,
        "page_type": item.page_type,
        "category": item.category,
        "page_id": item.page_id,
        "result": _value(item.result),
        "html_status": _value(item.html_status),
        "schema_status": _value(item.schema_status),
        "error_message": item.error_message,
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/runs", response_model=RunResponse, status_code=201)
def create_rows_batch(
    body: RowsBatchRequest, request: Request
) -> Union[dict[str, Any], JSONResponse]:
    """Create a pending run from JSON rows."""
    conn = request.app.state.db
    rows = [RowInput(**row.model_dump()) for row in body.rows]
    try:
        run = create_batch(conn, rows, label=body.label, source="Table")
    except SchemaBoardError as exc:
        return from_exception(exc)
    return _run_response(run)


@router.post("/runs/csv", response_model=RunResponse, status_code=201)
def create_csv_batch(
    body: CsvBatchRequest, request: Request
) -> Union[dict[str, Any], JSONResponse]:
    """Create a pending run from CSV text."""
    conn = request.app.state.db
    try:
        run = create_batch(conn, parse_csv(body.csv), label=body.label)
    except SchemaBoardError as exc:
        return from_exception(exc)
    return _run_response(run)


@router.post("/runs/paste", response_model=RunResponse, status_code=201)
def create_pasted_batch(
    body: PastedBatchRequest, request: Request
) -> Union[dict[str, Any], JSONResponse]:
    """Create a pending run from tab-separated lines pasted from a spreadsheet."""
    conn = request.app.state.db
    try:
        run = create_batch(conn, parse_pasted_grid(body.text), label=body.label, source="Table")
    except SchemaBoardError as exc:
        return from_exception(exc)
    return _run_response(run)


@router.get("/runs", response_model=list[RunResponse])
def list_all_runs(request: Request) -> list[dict[str, Any]]:
    """Return every run, most recent first."""
    conn = request.app.state.db
    return [_run_response(r) for r in list_runs(conn)]


@router.get("/runs/{run_id}", response_model=RunDetailResponse)
def get_run_detail(run_id: str, request: Request) -> Union[dict[str, Any], JSONResponse]:
    """Return a run with its items in row order and progress counts."""
    conn = request.app.state.db
    run = get_run(conn, run_id)
    if run is None:
        return error_response(404, f"Run not found: {run_id!r}")
    items = list_run_items(conn, run_id)
    return {
        "run": _run_response(run),
        "items": [_item_response(i) for i in items],
        "summary": summarize_items(run.id, run.status, items).to_dict(),
    }


@router.post("/process", response_model=None)
def process_run(body: ProcessRequest, request: Request) -> JSONResponse:
    """Run the ingestion pipeline over every item of ``run_id``."""
    if not body.run_id:
        return error_response(400, "run_id is required")

    conn = request.app.state.db
    try:
        fetcher = PageFetcher(conn, load_fetch_config(conn))
        summary = run_pipeline(conn, body.run_id, fetcher, request.app.state.generator)
    except Exception as exc:
        logger.exception("wizmode process failed for run {}", body.run_id)
        return from_exception(exc)

    return JSONResponse(
        status_code=200,
        content={"success": True, "message": "Run completed", "summary": summary.to_dict()},
    )
