"""Operations on the ``pages`` catalog table."""

from __future__ import annotations

import sqlite3
import uuid
from typing import Optional

from schemaboard.db.connection import persistence_errors
from schemaboard.db.models import Page, PageStatus, utcnow_iso
from schemaboard.errors import PersistenceError


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_page(row: sqlite3.Row) -> Page:
    return Page(
        id=row["id"],
        path=row["path"],
        domain=row["domain"],
        page_type=row["page_type"],
        category=row["category"],
        status=row["status"],
        last_crawled_at=row["last_crawled_at"],
        last_html_hash=row["last_html_hash"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def create_page(
    conn: sqlite3.Connection,
    path: str,
    domain: str,
    page_type: Optional[str] = None,
    category: Optional[str] = None,
    status: str = PageStatus.NOT_STARTED.value,
    page_id: Optional[str] = None,
) -> Page:
    """Insert a new page and return it.

    *path* must already be normalized; it is the catalog key.

    Raises:
        sqlite3.IntegrityError: If a page with *path* already exists.  Left
            untranslated so callers can resolve the conflict.
    """
    pid = page_id or str(uuid.uuid4())
    now = utcnow_iso()

    try:
        with conn:
            conn.execute(
                """
                INSERT INTO pages (id, path, domain, page_type, category, status,
                                   created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (pid, path, domain, page_type, category, status, now, now),
            )
    except sqlite3.IntegrityError:
        raise
    except sqlite3.Error as exc:
        raise PersistenceError(f"Failed to create page {path!r}: {exc}") from exc

    return get_page(conn, pid)  # type: ignore[return-value]


def get_page(conn: sqlite3.Connection, page_id: str) -> Optional[Page]:
    """Fetch a single page by its UUID.  Returns ``None`` if not found."""
    with persistence_errors("load page"):
        row = conn.execute("SELECT * FROM pages WHERE id = ?", (page_id,)).fetchone()
    return _row_to_page(row) if row else None


def find_page_by_path(conn: sqlite3.Connection, path: str) -> Optional[Page]:
    """Look a page up by its normalized *path*.  Returns ``None`` if absent."""
    with persistence_errors("look up page"):
        row = conn.execute("SELECT * FROM pages WHERE path = ?", (path,)).fetchone()
    return _row_to_page(row) if row else None


def record_crawl(
    conn: sqlite3.Connection,
    page_id: str,
    html_hash: str,
    crawled_at: str,
) -> None:
    """Store the latest content fingerprint and crawl timestamp on a page."""
    with persistence_errors("update page crawl metadata"):
        with conn:
            conn.execute(
                """
                UPDATE pages
                SET    last_html_hash = ?, last_crawled_at = ?, updated_at = ?
                WHERE  id = ?
                """,
                (html_hash, crawled_at, utcnow_iso(), page_id),
            )


def list_pages(
    conn: sqlite3.Connection,
    domain: Optional[str] = None,
) -> list[Page]:
    """Return all pages ordered by path, optionally filtered by ``domain``."""
    with persistence_errors("list pages"):
        if domain:
            rows = conn.execute(
                "SELECT * FROM pages WHERE domain = ? ORDER BY path", (domain,)
            ).fetchall()
        else:
            rows = conn.execute("SELECT * FROM pages ORDER BY path").fetchall()
    return [_row_to_page(r) for r in rows]
