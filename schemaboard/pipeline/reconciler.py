"""Find-or-create reconciliation of batch rows against the page catalog."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from schemaboard.crawler.paths import normalize_path
from schemaboard.db.pages import create_page, find_page_by_path
from schemaboard.errors import PersistenceError, ValidationError
from schemaboard.logger import logger


@dataclass(frozen=True)
class Reconciliation:
    page_id: str
    is_new: bool


def reconcile(
    conn: sqlite3.Connection,
    domain: str,
    raw_path: str,
    page_type: str,
    category: str,
) -> Reconciliation:
    """Resolve *raw_path* to a catalog page, creating it when absent.

    Existing pages are returned untouched (``is_new=False``); refreshing
    their crawl data and schema is left to the later stages, which makes
    re-running a batch non-destructive.  New pages start as
    ``not_started``.

    ``pages.path`` is unique, so when two runs race to create the same path
    the loser re-reads the winner's row instead of creating a duplicate.

    Raises:
        ValidationError: If any argument is empty or blank.
        PersistenceError: If the catalog cannot be read or written.
    """
    values = {
        "domain": domain,
        "path": raw_path,
        "page_type": page_type,
        "category": category,
    }
    missing = [name for name, value in values.items() if not (value or "").strip()]
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

    path = normalize_path(raw_path)

    existing = find_page_by_path(conn, path)
    if existing is not None:
        logger.info("Found existing page {} ({}) - will update", path, existing.id)
        return Reconciliation(page_id=existing.id, is_new=False)

    try:
        page = create_page(
            conn,
            path=path,
            domain=domain,
            page_type=page_type,
            category=category,
        )
    except sqlite3.IntegrityError as exc:
        winner = find_page_by_path(conn, path)
        if winner is None:
            raise PersistenceError(f"Failed to create page {path!r}: {exc}") from exc
        logger.warning("Page {} was created concurrently; reusing {}", path, winner.id)
        return Reconciliation(page_id=winner.id, is_new=False)

    logger.info("Created page {} ({})", path, page.id)
    return Reconciliation(page_id=page.id, is_new=True)
