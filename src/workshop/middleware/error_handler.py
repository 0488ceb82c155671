"""Global error handlers: every failure becomes a JSON envelope.

``{"success": false, "error": <human message>, "error_code": <stable tag>}``
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from workshop.exceptions import WorkshopError

logger = structlog.get_logger()

_HTTP_ERROR_CODES = {
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    429: "rate_limited",
}


def error_body(message: str, error_code: str, **extra: object) -> dict:
    """Build the failure envelope."""
    return {"success": False, "error": message, "error_code": error_code, **extra}


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(WorkshopError)
    async def workshop_error_handler(request: Request, exc: WorkshopError) -> JSONResponse:
        """Map domain errors to their status code and tag."""
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "domain_error",
            path=request.url.path,
            method=request.method,
            error_code=exc.error_code,
            error=exc.message,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.error_code),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """Handle HTTP exceptions with the same envelope."""
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail), _HTTP_ERROR_CODES.get(exc.status_code, "http_error")),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle request validation errors."""
        return JSONResponse(
            status_code=422,
            content=error_body(
                "Некорректные данные запроса",
                "validation_error",
                errors=jsonable_encoder(exc.errors()),
            ),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions; no internals leave the process."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content=error_body("Внутренняя ошибка сервера", "internal_error"),
        )
