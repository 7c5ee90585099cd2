"""Exception handlers translating domain errors into ``{error}`` JSON bodies."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from .exceptions import AppError

logger = logging.getLogger(__name__)


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload())


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.unexpected_error", extra={"path": request.url.path}, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unexpected_error_handler)


__all__ = ["app_error_handler", "register_error_handlers", "unexpected_error_handler"]
