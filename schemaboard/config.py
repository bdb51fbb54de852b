"""Centralised settings for the SchemaBoard backend.

All process-level configuration is resolved here in one place.  Values can
be overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

Fetch configuration (base URL and preview credentials) is *not* held here:
it lives in the persisted ``settings`` record and is handed to the fetcher
explicitly as a :class:`~schemaboard.db.models.FetchConfig`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _optional_float(name: str) -> Optional[float]:
    value = os.environ.get(name, "").strip()
    return float(value) if value else None


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("SCHEMABOARD_WORKSPACE", Path.home() / ".schemaboard")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "schemaboard.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # HTML fetcher
    # ------------------------------------------------------------------
    # None disables the timeout entirely.
    request_timeout: Optional[float] = field(
        default_factory=lambda: _optional_float("REQUEST_TIMEOUT")
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "FETCH_USER_AGENT", "SchemaBoard-HTMLFetcher/1.0"
        )
    )

    # ------------------------------------------------------------------
    # Schema generation step
    # ------------------------------------------------------------------
    generator_url: Optional[str] = field(
        default_factory=lambda: os.environ.get("SCHEMA_GENERATOR_URL") or None
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )
    log_dir: Optional[Path] = field(
        default_factory=lambda: (
            Path(os.environ["LOG_DIR"]) if os.environ.get("LOG_DIR") else None
        )
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this everywhere:
#   from schemaboard.config import settings
settings = Settings()
