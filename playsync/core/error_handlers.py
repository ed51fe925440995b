"""Exception handlers that turn core errors into JSON responses."""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from playsync.core.exceptions import ErrorCode, PlaybackSyncException
from playsync.core.logging import get_logger

logger = get_logger("ErrorHandlers")


async def playback_sync_exception_handler(request: Request, exc: PlaybackSyncException) -> JSONResponse:
    """Return {"error": <message>, "code": <code>} with the exception's status code."""
    logger.warning(
        f"{exc.code.value} on {request.method} {request.url.path}: {exc.message} {exc.details or ''}"
    )

    content: dict[str, Any] = {"error": exc.message, "code": exc.code.value}
    if exc.details:
        content["details"] = exc.details

    return JSONResponse(status_code=exc.status_code, content=content)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback and hide internals from the client."""
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "code": ErrorCode.INTERNAL_ERROR.value},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the application.

    Request validation keeps FastAPI's default 422 handler, which reports
    field-level errors under "detail".
    """
    app.add_exception_handler(PlaybackSyncException, playback_sync_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
