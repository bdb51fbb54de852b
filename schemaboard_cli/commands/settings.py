"""Fetch configuration commands."""

from __future__ import annotations

from typing import Optional

import typer

from schemaboard.db import get_connection, init_db
from schemaboard.db.models import FetchConfig
from schemaboard.db.settings_store import load_fetch_config, save_fetch_config

settings_app = typer.Typer(help="Show or change the fetch configuration.", no_args_is_help=True)


@settings_app.command("show")
def settings_show() -> None:
    """Print the stored fetch configuration."""
    conn = get_connection()
    init_db(conn)
    try:
        config = load_fetch_config(conn)
    finally:
        conn.close()

    if config is None:
        typer.echo("No settings saved. Run 'settings set --base-url ...'.")
        return
    typer.echo(f"base url  : {config.base_url or '(none)'}")
    typer.echo(f"auth user : {config.auth_user or '(none)'}")
    typer.echo(f"password  : {'set' if config.auth_password else '(none)'}")


@settings_app.command("set")
def settings_set(
    base_url: str = typer.Option(..., "--base-url", help="Base URL pages are fetched from."),
    auth_user: Optional[str] = typer.Option(None, "--auth-user", help="Basic-auth user."),
    auth_password: Optional[str] = typer.Option(None, "--auth-password", help="Basic-auth password."),
) -> None:
    """Save the fetch configuration."""
    conn = get_connection()
    init_db(conn)
    try:
        save_fetch_config(
            conn,
            FetchConfig(base_url=base_url, auth_user=auth_user, auth_password=auth_password),
        )
    finally:
        conn.close()
    typer.echo(f"✅ Settings saved (base url {base_url})")
