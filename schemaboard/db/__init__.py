"""Database layer package.

Public re-exports so callers can write::

    from schemaboard.db import get_connection, init_db
    from schemaboard.db import pages, runs
"""

from schemaboard.db.connection import get_connection
from schemaboard.db.bootstrap import init_db
from schemaboard.db import pages, runs, settings_store

__all__ = ["get_connection", "init_db", "pages", "runs", "settings_store"]
