"""CORS for the Telegram Mini-App and the admin panel."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workshop.config import Settings

# Headers the Mini-App reads to show throttling and correlate errors
_EXPOSED = ["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit", "Retry-After"]


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured origins; a ``*`` entry opens the API without credentials."""
    wildcard = "*" in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if wildcard else settings.cors_origins,
        allow_credentials=not wildcard,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-Id"],
        expose_headers=_EXPOSED,
        max_age=600,
    )
