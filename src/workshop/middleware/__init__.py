"""Middleware registration."""

from fastapi import FastAPI

from workshop.config import Settings
from workshop.middleware.cors import setup_cors
from workshop.middleware.error_handler import setup_error_handlers
from workshop.middleware.logging import setup_logging
from workshop.middleware.rate_limit import RateLimitMiddleware
from workshop.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Wire logging, error envelopes and the request pipeline.

    A request passes CORS, then request id binding, then the rate limiter.
    Starlette wraps in reverse order of ``add_middleware``, so the calls
    below run innermost first. A 429 from the limiter therefore still
    carries CORS headers and an ``X-Request-Id`` for the Mini-App.
    """
    setup_logging(settings)
    setup_error_handlers(app)

    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
