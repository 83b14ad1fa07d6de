"""Error Handlers: map scoring, lifecycle and request errors to JSON envelopes.

Invariants:
    - QuiverError -> its own envelope and http_status; arrow and round input errors
      also name the offending field (zoneHit, scoreValue, targetNumber, ...)
    - RequestValidationError -> 400 with one entry per wire field, "body." prefix dropped
    - Exception (catch-all) -> 500, never leaks internal details
    - 4xx domain errors log at WARNING with the caller and round ids, 5xx at ERROR
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from quiver.core.errors import QuiverError, ErrorSeverity, RoundValidationError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register the Quiver error handlers on the FastAPI app."""
    _register_quiver_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_quiver_error_handler(app: FastAPI) -> None:

    @app.exception_handler(QuiverError)
    async def quiver_error_handler(request: Request, exc: QuiverError):
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"{type(exc).__name__}: {exc.message}",
            extra={
                "error_code": exc.code,
                "path": request.url.path,
                "round_id": exc.context.round_id,
                "participant_id": exc.context.participant_id,
                "user_id": request.headers.get("x-user-id"),
            },
        )
        content = exc.to_response()
        if isinstance(exc, RoundValidationError):
            content["error"]["field"] = exc.field
        return JSONResponse(status_code=exc.http_status, content=content)


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        logger.warning(
            f"Invalid request body on {request.url.path}: {exc.errors()}",
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
            extra={"path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _wire_field(loc: tuple) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(parts)


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": _wire_field(e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
