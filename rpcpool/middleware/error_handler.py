"""Global error hierarchy and FastAPI exception handlers.

All pool-specific errors extend RpcPoolError. The FastAPI exception handlers
catch these errors (plus Pydantic's RequestValidationError and unhandled exceptions)
and return a consistent JSON envelope: { success, data, error, meta }.
"""

from __future__ import annotations

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error hierarchy
# ---------------------------------------------------------------------------


class RpcPoolError(Exception):
    """Base error for all rpcpool-specific errors."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: str | None = None, **kwargs: object) -> None:
        self.message = message or self.__class__.message
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(RpcPoolError):
    """Invalid constructor or environment configuration."""

    status_code = 422
    message = "Invalid configuration"


class InvalidTransportKindError(RpcPoolError):
    """Transport kind is neither 'https' nor 'ws'."""

    status_code = 400
    message = "Invalid transport kind: must be 'https' or 'ws'"


class NoValidEndpointsError(RpcPoolError):
    """No validated endpoints available for the requested transport kind."""

    status_code = 503
    message = "No valid endpoints available"


class CandidateSourceError(RpcPoolError):
    """Base for candidate-list loading failures."""

    status_code = 502
    message = "Candidate list unavailable"


class SourceUnavailableError(CandidateSourceError):
    """Candidate list file is missing or unreadable."""

    status_code = 503
    message = "Candidate list source unavailable"


class NetworkNotFoundError(CandidateSourceError):
    """Network identifier absent from the candidate list."""

    status_code = 404
    message = "Network not found in candidate list"


class InvalidFormatError(CandidateSourceError):
    """Candidate list could not be parsed."""

    status_code = 502
    message = "Candidate list has an invalid format"


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------


def _envelope(
    status_code: int,
    error: str,
    meta: dict | None = None,
) -> JSONResponse:
    """Build a JSON envelope error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "data": None,
            "error": error,
            "meta": meta,
        },
    )


async def _rpcpool_error_handler(_request: Request, exc: RpcPoolError) -> JSONResponse:
    """Handle RpcPoolError subclasses."""
    meta = exc.details if exc.details else None
    return _envelope(exc.status_code, exc.message, meta=meta)


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI / Pydantic RequestValidationError (422)."""
    field_errors = [
        {
            "field": " -> ".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    return _envelope(
        status_code=422,
        error="Validation error",
        meta={"fields": field_errors},
    )


async def _unhandled_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions: log traceback, return generic 500."""
    logger.error(
        "Unhandled exception: %s\n%s",
        exc,
        traceback.format_exc(),
    )
    return _envelope(status_code=500, error="Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    """Wire up all exception handlers on the FastAPI application."""
    app.add_exception_handler(RpcPoolError, _rpcpool_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _unhandled_error_handler)  # type: ignore[arg-type]
