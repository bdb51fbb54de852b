"""Fetch configuration singleton.

Routes
------
GET /settings    Current fetch configuration (the password is never returned)
PUT /settings    Body: {"fetch_base_url": "...", "preview_auth_user": "...", "preview_auth_password": "..."}
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from schemaboard.db.models import FetchConfig
from schemaboard.db.settings_store import load_fetch_config, save_fetch_config

router = APIRouter()


class SettingsUpdate(BaseModel):
    fetch_base_url: Optional[str] = None
    preview_auth_user: Optional[str] = None
    preview_auth_password: Optional[str] = None


class SettingsResponse(BaseModel):
    fetch_base_url: Optional[str]
    preview_auth_user: Optional[str]
    has_preview_password: bool


def _settings_response(config: Optional[FetchConfig]) -> dict[str, Any]:
    if config is None:
        return {"fetch_base_url": None, "preview_auth_user": None, "has_preview_password": False}
    return {
        "fetch_base_url": config.base_url,
        "preview_auth_user": config.auth_user,
        "has_preview_password": bool(config.auth_password),
    }


@router.get("", response_model=SettingsResponse)
def read_settings(request: Request) -> dict[str, Any]:
    conn = request.app.state.db
    return _settings_response(load_fetch_config(conn))


@router.put("", response_model=SettingsResponse)
def write_settings(body: SettingsUpdate, request: Request) -> dict[str, Any]:
    """Replace the fetch configuration."""
    conn = request.app.state.db
    config = save_fetch_config(
        conn,
        FetchConfig(
            base_url=body.fetch_base_url,
            auth_user=body.preview_auth_user,
            auth_password=body.preview_auth_password,
        ),
    )
    return _settings_response(config)
