"""structlog configuration for the API process."""

import logging

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from workshop.config import Settings


def _service_context(environment: str, version: str) -> Processor:
    def add(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", "workshop")
        event_dict.setdefault("env", environment)
        event_dict.setdefault("version", version)
        return event_dict

    return add


def setup_logging(settings: Settings) -> None:
    """JSON lines in deployments, colored console output with ``WORKSHOP_LOG_FORMAT=console``.

    Cyrillic user-facing text stays readable in JSON (``ensure_ascii=False``).
    """
    renderer: Processor
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            _service_context(settings.environment, settings.app_version),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
    # RequestIdMiddleware logs every request with its id; uvicorn's access line would duplicate it
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    # SQL echo is controlled by WORKSHOP_DATABASE_ECHO, not the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
