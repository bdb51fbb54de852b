"""SchemaBoard CLI entry-point for the ingestion pipeline.

Usage:
    schemaboard --help
    python schemaboard_cli/main.py --help

Command groups:
    db        → database setup
    settings  → fetch configuration
    runs      → batch intake, processing and inspection
    pages     → catalog pages and single-page fetch
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from schemaboard.xxx import ...`
# works when the CLI is invoked as `python schemaboard_cli/main.py`.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import typer

from schemaboard.config import settings
from schemaboard.db import get_connection, init_db

from schemaboard_cli.commands.pages import pages_app
from schemaboard_cli.commands.runs import runs_app
from schemaboard_cli.commands.settings import settings_app

app = typer.Typer(
    name="schemaboard",
    help="SchemaBoard page ingestion CLI.",
    no_args_is_help=True,
)

db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")
app.add_typer(settings_app, name="settings")
app.add_typer(runs_app, name="runs")
app.add_typer(pages_app, name="pages")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
