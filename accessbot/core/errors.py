"""
accessbot/core/errors.py

Purpose: HTTP error responses for the webhook app

- Maps AccessBotError subclasses to their status code and error code
- Normalizes FastAPI / Starlette errors to the same ErrorResponse body
- Hides internal error text in production
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from accessbot.core.config import settings, Settings
from accessbot.core.exceptions import AccessBotError
from accessbot.schemas.response import ErrorResponse
from accessbot.core.logging import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "An internal error occurred. Please try again later."


def error_response(status_code: int, error: str, code: str, details: Optional[Any] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, code=code, details=details).model_dump()
    )


def add_exception_handlers(app: FastAPI, config: Optional[Settings] = None):
    """
    Registers exception handlers with the FastAPI app.

    Args:
        app: Application to register on
        config: Settings of that app (production hides internal error text)
    """
    config = config or settings

    @app.exception_handler(AccessBotError)
    async def accessbot_exception_handler(request: Request, exc: AccessBotError):
        # Bad secrets and malformed updates are client errors, platform failures are ours
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        return error_response(exc.status_code, exc.message, exc.code, exc.details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response(
            422,
            "Input validation failed",
            "VALIDATION_ERROR",
            [{"loc": list(err.get("loc", [])), "msg": err.get("msg")} for err in exc.errors()]
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}: {exc}",
            extra={"client": request.client.host if request.client else "unknown"},
            exc_info=True
        )
        message = INTERNAL_ERROR_MESSAGE if config.is_production else str(exc)
        return error_response(500, message, "INTERNAL_ERROR")
