"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection (shared across all
requests via ``request.app.state.db``) and initialises the schema.  It also
builds the schema generation client (``request.app.state.generator``) from
``SCHEMA_GENERATOR_URL``.  On shutdown the connection is closed.

Routers
-------
    /wizmode     : batch intake, run trigger and run inspection
    /fetch-html  : single-page fetch & change detection
    /pages       : read-only catalog listing
    /settings    : fetch configuration singleton
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schemaboard.config import settings
from schemaboard.db import get_connection, init_db
from schemaboard.logger import logger
from schemaboard.pipeline.generation import HttpSchemaGenerator

from schemaboard.api.routers import fetch as fetch_router
from schemaboard.api.routers import pages as pages_router
from schemaboard.api.routers import settings as settings_router
from schemaboard.api.routers import wizmode as wizmode_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB on startup and close it on shutdown."""
    conn = get_connection()
    init_db(conn)
    app.state.db = conn
    logger.info("Database ready at {}", settings.db_path)
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="SchemaBoard API",
        description=(
            "Bulk page ingestion for the schema dashboard: CSV batch intake, "
            "catalog reconciliation, HTML fetch with change detection, and "
            "schema generation runs."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.generator = HttpSchemaGenerator(settings.generator_url)

    # The dashboard is a browser app; answer pre-flight from any origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(wizmode_router.router, prefix="/wizmode", tags=["wizmode"])
    app.include_router(fetch_router.router, prefix="/fetch-html", tags=["fetch"])
    app.include_router(pages_router.router, prefix="/pages", tags=["pages"])
    app.include_router(settings_router.router, prefix="/settings", tags=["settings"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn schemaboard.api.app:app --reload
app = create_app()
