"""Single-page HTML fetch.

Routes
------
POST /fetch-html    Body: {"page_id": "..."}

Status codes: 400 missing ``page_id``, 404 unknown page, 502 upstream
failure, 500 settings or persistence failure.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from schemaboard.api.responses import error_response, from_exception
from schemaboard.crawler.fetcher import PageFetcher
from schemaboard.db.settings_store import load_fetch_config
from schemaboard.errors import SchemaBoardError
from schemaboard.logger import logger

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class FetchRequest(BaseModel):
    page_id: Optional[str] = None


class FetchResponse(BaseModel):
    success: bool
    content: str
    content_hash: str
    content_changed: bool
    fetch_url: str
    content_length: int
    fetched_at: str


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=FetchResponse)
def fetch_html(body: FetchRequest, request: Request) -> Union[dict[str, Any], JSONResponse]:
    """Fetch a page's live HTML, fingerprint it and record the crawl."""
    if not body.page_id:
        return error_response(400, "page_id is required")

    conn = request.app.state.db
    try:
        fetcher = PageFetcher(conn, load_fetch_config(conn))
        result = fetcher.fetch(body.page_id)
    except SchemaBoardError as exc:
        logger.error("fetch-html failed for {}: {}", body.page_id, exc)
        return from_exception(exc)
    except Exception as exc:
        logger.exception("fetch-html crashed for {}", body.page_id)
        return from_exception(exc)

    return {
        "success": True,
        "content": result.content,
        "content_hash": result.content_hash,
        "content_changed": result.content_changed,
        "fetch_url": result.fetch_url,
        "content_length": result.content_length,
        "fetched_at": result.fetched_at,
    }
