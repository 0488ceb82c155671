"""Shared FastAPI dependencies."""

from fastapi import Request

from workshop.config import Settings, get_settings
from workshop.database import get_session as _get_session

get_db = _get_session


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with (falls back to the environment)."""
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()
