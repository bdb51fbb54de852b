"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from schemaboard.api import app

    uvicorn schemaboard.api:app --reload
"""

from schemaboard.api.app import app

__all__ = ["app"]
