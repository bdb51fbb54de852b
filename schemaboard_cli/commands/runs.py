"""Batch run commands: create from CSV, process, inspect."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from schemaboard.config import settings
from schemaboard.crawler.fetcher import PageFetcher
from schemaboard.db import get_connection, init_db
from schemaboard.db.runs import get_run, list_run_items, list_runs
from schemaboard.db.settings_store import load_fetch_config
from schemaboard.errors import SchemaBoardError
from schemaboard.pipeline.generation import HttpSchemaGenerator
from schemaboard.pipeline.intake import create_batch, parse_csv
from schemaboard.pipeline.orchestrator import run_pipeline, summarize_items

from schemaboard_cli.rendering import render_items, render_summary

runs_app = typer.Typer(help="Create, process and inspect ingestion runs.", no_args_is_help=True)


@runs_app.command("create")
def runs_create(
    csv_path: Path = typer.Option(..., "--csv", exists=True, dir_okay=False, help="CSV file to import."),
    label: Optional[str] = typer.Option(None, help="Batch label."),
) -> None:
    """Create a pending run from a CSV file (domain,path,page_type,category)."""
    conn = get_connection()
    init_db(conn)
    try:
        rows = parse_csv(csv_path.read_text(encoding="utf-8"))
        run = create_batch(conn, rows, label=label)
    except SchemaBoardError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()
    typer.echo(f"✅ Run created: {run.id}  label={run.label!r}  rows={run.total_rows}")


@runs_app.command("process")
def runs_process(
    run_id: str = typer.Argument(..., help="ID of the run to process."),
) -> None:
    """Process every row of a run: reconcile, fetch HTML, generate schema."""
    conn = get_connection()
    init_db(conn)
    try:
        fetcher = PageFetcher(conn, load_fetch_config(conn))
        generator = HttpSchemaGenerator(settings.generator_url)
        typer.echo(f"⚙️  Processing run {run_id} …")
        summary = run_pipeline(conn, run_id, fetcher, generator)
        items = list_run_items(conn, run_id)
    except SchemaBoardError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)
    finally:
        conn.close()

    typer.echo(render_items(items))
    typer.echo("")
    typer.echo(render_summary(summary))


@runs_app.command("show")
def runs_show(
    run_id: str = typer.Argument(..., help="ID of the run to show."),
) -> None:
    """Show a run's status and per-row progress."""
    conn = get_connection()
    init_db(conn)
    try:
        run = get_run(conn, run_id)
        if run is None:
            typer.echo(f"❌ Run not found: {run_id}")
            raise typer.Exit(code=1)
        items = list_run_items(conn, run_id)
    finally:
        conn.close()

    typer.echo(f"Run {run.id}  [{run.status.value}]  {run.label or ''}")
    typer.echo(render_items(items))
    typer.echo("")
    typer.echo(render_summary(summarize_items(run.id, run.status, items)))


@runs_app.command("list")
def runs_list() -> None:
    """List all runs, most recent first."""
    conn = get_connection()
    init_db(conn)
    try:
        runs = list_runs(conn)
    finally:
        conn.close()

    if not runs:
        typer.echo("No runs found.")
        return
    for r in runs:
        typer.echo(f" - {r.id}  [{r.status.value}]  {r.label or ''}  ({r.total_rows} rows)")
