"""Domain exceptions raised by services and their HTTP translation.

Services stay framework-agnostic: they raise one of the errors below and the
handler registered in `setup_exception_handlers` turns it into a JSON response
with the matching status code.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class FansiteError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class BadRequestError(FansiteError):
    status_code = 400


class UnauthorizedError(FansiteError):
    status_code = 401


class ForbiddenError(FansiteError):
    status_code = 403


class NotFoundError(FansiteError):
    status_code = 404


class ConflictError(FansiteError):
    status_code = 409


async def fansite_error_handler(request: Request, exc: FansiteError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    else:
        logger.debug(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    error_id = id(exc)
    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error_id": error_id},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register the domain and catch-all exception handlers."""
    app.add_exception_handler(FansiteError, fansite_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
