"""Catalog page commands."""

from __future__ import annotations

from typing import Optional

import typer

from schemaboard.crawler.fetcher import PageFetcher
from schemaboard.crawler.paths import normalize_path
from schemaboard.db import get_connection, init_db
from schemaboard.db.pages import list_pages
from schemaboard.db.settings_store import load_fetch_config
from schemaboard.errors import SchemaBoardError

pages_app = typer.Typer(help="Inspect and refresh catalog pages.", no_args_is_help=True)


@pages_app.command("list")
def pages_list(
    domain: Optional[str] = typer.Option(None, help="Filter by domain (e.g. Beer)."),
) -> None:
    """List catalog pages ordered by path."""
    conn = get_connection()
    init_db(conn)
    try:
        pages = list_pages(conn, domain=domain)
    finally:
        conn.close()

    if not pages:
        typer.echo("No pages found.")
        return
    for p in pages:
        crawled = p.last_crawled_at or "never"
        typer.echo(f" - {p.path}  [{p.domain}]  {p.status}  crawled={crawled}  ({p.id})")


@pages_app.command("fetch")
def pages_fetch(
    page_id: str = typer.Argument(..., help="ID of the page to fetch."),
) -> None:
    """Fetch a page's live HTML and report whether it changed."""
    conn = get_connection()
    init_db(conn)
    try:
        result = PageFetcher(conn, load_fetch_config(conn)).fetch(page_id)
    except SchemaBoardError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()

    typer.echo(f"🌐 {result.fetch_url}")
    typer.echo(f"   length  : {result.content_length}")
    typer.echo(f"   hash    : {result.content_hash}")
    typer.echo(f"   changed : {'yes' if result.content_changed else 'no'}")


@pages_app.command("normalize")
def pages_normalize(
    raw: str = typer.Argument(..., help="Path or URL to normalize."),
) -> None:
    """Print the catalog key for a path or URL."""
    typer.echo(normalize_path(raw))
