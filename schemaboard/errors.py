"""Error taxonomy for the ingestion pipeline.

Each exception carries the HTTP status the API layer answers with when it
escapes a request handler.  Inside the run orchestrator none of them crosses
the per-item boundary: they are converted into item status fields instead.
"""

from __future__ import annotations

from typing import Optional


class SchemaBoardError(Exception):
    """Base class for every error raised deliberately by this package."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(SchemaBoardError):
    """Missing or malformed caller input."""

    status_code = 400


class NotFoundError(SchemaBoardError):
    """A referenced page or run does not exist."""

    status_code = 404


class UpstreamFetchError(SchemaBoardError):
    """The remote page was unreachable or answered with a non-2xx status.

    ``status`` is the upstream HTTP status, or ``None`` for transport errors.
    """

    status_code = 502

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class GenerationError(SchemaBoardError):
    """The downstream schema generation step failed."""

    status_code = 502


class PersistenceError(SchemaBoardError):
    """A datastore read or write failed."""

    status_code = 500


class ConfigurationError(SchemaBoardError):
    """Required settings are absent."""

    status_code = 500


__all__ = [
    "SchemaBoardError",
    "ValidationError",
    "NotFoundError",
    "UpstreamFetchError",
    "GenerationError",
    "PersistenceError",
    "ConfigurationError",
]
