"""Database initialisation.

``init_db(conn)`` applies the bundled ``schema.sql``; every statement in it
is ``IF NOT EXISTS`` so it is safe to run against an existing database.
"""

from __future__ import annotations

import sqlite3

from schemaboard.config import settings


def init_db(conn: sqlite3.Connection) -> None:
    """Create all tables and indexes that do not exist yet.

    Args:
        conn: An open, configured SQLite connection.
    """
    schema = settings.schema_path.read_text(encoding="utf-8")
    # executescript() issues an implicit COMMIT first, fine for DDL-only scripts.
    conn.executescript(schema)
