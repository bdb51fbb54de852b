"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.  Unset statuses are ``None`` (SQL
``NULL``).
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utcnow_iso() -> str:
    """Current UTC time as an ISO-8601 string with microseconds."""
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Status vocabularies
# ---------------------------------------------------------------------------

class RunStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ItemResult(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    ERROR = "error"


class StageStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class PageStatus(str, Enum):
    NOT_STARTED = "not_started"


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

@dataclass
class Page:
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


@dataclass
class Run:
    id: str
    label: Optional[str]
    total_rows: int
    status: RunStatus
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class RowInput:
    """The caller-supplied part of a batch row.

    All four fields are required for a row to be processed; ``None`` or a
    blank string counts as absent.
    """

    domain: Optional[str] = None
    path: Optional[str] = None
    page_type: Optional[str] = None
    category: Optional[str] = None

    def missing_fields(self) -> list[str]:
        """Names of required fields that are absent, in declaration order."""
        return [
            f.name
            for f in fields(self)
            if not (getattr(self, f.name) or "").strip()
        ]


@dataclass
class RunItem:
    id: str
    run_id: str
    row_number: int
    domain: Optional[str]
    path: Optional[str]
    page_type: Optional[str]
    category: Optional[str]
    page_id: Optional[str]
    result: Optional[ItemResult]
    html_status: Optional[StageStatus]
    schema_status: Optional[StageStatus]
    error_message: Optional[str]
    created_at: str

    @property
    def row(self) -> RowInput:
        return RowInput(
            domain=self.domain,
            path=self.path,
            page_type=self.page_type,
            category=self.category,
        )


# ---------------------------------------------------------------------------
# Fetcher values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FetchConfig:
    """Where and how to fetch live page HTML.

    Basic auth is only used when both ``auth_user`` and ``auth_password``
    are set.
    """

    base_url: Optional[str]
    auth_user: Optional[str] = None
    auth_password: Optional[str] = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.auth_user and self.auth_password)


@dataclass
class FetchResult:
    content: str
    content_hash: str
    content_changed: bool
    fetch_url: str
    content_length: int
    fetched_at: str
