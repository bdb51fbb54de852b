"""JSON error bodies shared by the routers.

Every failure is answered as ``{"error": "<message>"}`` so the dashboard
can show it verbatim.
"""

from __future__ import annotations

from fastapi.responses import JSONResponse

from schemaboard.errors import SchemaBoardError


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def from_exception(exc: Exception) -> JSONResponse:
    """Map a caught exception onto its status code (500 when unknown)."""
    if isinstance(exc, SchemaBoardError):
        return error_response(exc.status_code, exc.message)
    return error_response(500, str(exc) or "Unknown error")
