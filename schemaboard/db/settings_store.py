"""The ``settings`` singleton record holding fetch configuration."""

from __future__ import annotations

import sqlite3
from typing import Optional

from schemaboard.db.connection import persistence_errors
from schemaboard.db.models import FetchConfig, utcnow_iso


def load_fetch_config(conn: sqlite3.Connection) -> Optional[FetchConfig]:
    """Return the stored fetch configuration, or ``None`` if never saved."""
    with persistence_errors("load settings"):
        row = conn.execute("SELECT * FROM settings WHERE id = 1").fetchone()
    if row is None:
        return None
    return FetchConfig(
        base_url=row["fetch_base_url"],
        auth_user=row["preview_auth_user"],
        auth_password=row["preview_auth_password"],
    )


def save_fetch_config(conn: sqlite3.Connection, config: FetchConfig) -> FetchConfig:
    """Insert or replace the singleton settings record."""
    with persistence_errors("save settings"):
        with conn:
            conn.execute(
                """
                INSERT INTO settings (id, fetch_base_url, preview_auth_user,
                                      preview_auth_password, updated_at)
                VALUES (1, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    fetch_base_url        = excluded.fetch_base_url,
                    preview_auth_user     = excluded.preview_auth_user,
                    preview_auth_password = excluded.preview_auth_password,
                    updated_at            = excluded.updated_at
                """,
                (config.base_url, config.auth_user, config.auth_password, utcnow_iso()),
            )
    return config
