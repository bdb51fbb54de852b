"""Read-only catalog endpoints.

Routes
------
GET /pages              List pages (optional ?domain= filter)
GET /pages/{page_id}    Fetch a single page
"""

from __future__ import annotations

from typing import Any, Optional, Union

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from schemaboard.api.responses import error_response
from schemaboard.db.models import Page
from schemaboard.db.pages import get_page, list_pages

router = APIRouter()


class PageResponse(BaseModel):
    id: str
    path: str
    domain: str
    page_type: Optional[str]
    category: Optional[str]
    status: str
    last_crawled_at: Optional[str]
    last_html_hash: Optional[str]
    created_at: str
    updated_at: str


def _page_response(page: Page) -> dict[str, Any]:
    return {
        "id": page.id,
        "path": page.path,
        "domain": page.domain,
        "page_type": page.page_type,
        "category": page.category,
        "status": page.status,
        "last_crawled_at": page.last_crawled_at,
        "last_html_hash": page.last_html_hash,
        "created_at": page.created_at,
        "updated_at": page.updated_at,
    }


@router.get("", response_model=list[PageResponse])
def list_all(request: Request, domain: Optional[str] = None) -> list[dict[str, Any]]:
    """Return all pages ordered by path, optionally filtered by ``domain``."""
    conn = request.app.state.db
    return [_page_response(p) for p in list_pages(conn, domain=domain)]


@router.get("/{page_id}", response_model=PageResponse)
def get_one(page_id: str, request: Request) -> Union[dict[str, Any], JSONResponse]:
    """Fetch a single page by its UUID."""
    conn = request.app.state.db
    page = get_page(conn, page_id)
    if page is None:
        return error_response(404, f"Page not found: {page_id!r}")
    return _page_response(page)
