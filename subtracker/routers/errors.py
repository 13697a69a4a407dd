"""
Translation of domain error kinds into HTTP responses.

The domain layer raises typed exceptions and never logs; this is the one
place that maps each kind to a status code, and it logs only the faults
that are ours rather than the client's.
"""
import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from subtracker.exceptions import (
    ConsistencyError,
    FormatError,
    InvalidPeriodError,
    NotFoundError,
    StorageError,
    ValidationError,
)


def _error(status_code: int, message: str, field: str | None = None) -> JSONResponse:
    body = {"error": message}
    if field is not None:
        body["field"] = field
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI, logger: logging.Logger) -> None:
    """Install one handler per domain error kind on *app*."""

    @app.exception_handler(FormatError)
    async def _format_error(request: Request, exc: FormatError):
        return _error(400, exc.message, exc.field)

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return _error(400, exc.message, exc.field)

    @app.exception_handler(InvalidPeriodError)
    async def _invalid_period(request: Request, exc: InvalidPeriodError):
        return _error(400, exc.message)

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return _error(404, "subscription not found")

    @app.exception_handler(ConsistencyError)
    async def _consistency_error(request: Request, exc: ConsistencyError):
        logger.error("Consistency fault on %s %s: %s", request.method, request.url.path, exc.message)
        return _error(500, "subscription could not be read back after create")

    @app.exception_handler(StorageError)
    async def _storage_error(request: Request, exc: StorageError):
        logger.error(
            "Storage failure on %s %s: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc.__cause__,
        )
        return _error(500, "internal storage error")

    @app.exception_handler(asyncio.TimeoutError)
    async def _timeout(request: Request, exc: asyncio.TimeoutError):
        logger.warning("Request deadline exceeded on %s %s", request.method, request.url.path)
        return _error(504, "request deadline exceeded")
