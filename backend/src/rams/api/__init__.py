"""FastAPI routes and API modules for RAMS.

Provides the error envelope and the handlers that turn domain errors
into HTTP responses.
"""

from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    RamsError,
    SequenceAllocationError,
    ValidationError,
)

# =========================
# Response Models
# =========================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    success: bool = False
    error: str
    error_code: str
    details: list[ErrorDetail] | None = None


# Most specific first; NotPrintableError is matched as an InvalidTransitionError
# but keeps its own error code.
ERROR_STATUS: list[tuple[type[RamsError], int]] = [
    (ValidationError, 422),
    (AuthenticationError, 401),
    (ForbiddenError, 403),
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (ConflictError, 409),
    (SequenceAllocationError, 500),
]


def status_for(exc: RamsError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


# =========================
# Exception Handlers
# =========================


async def rams_error_handler(request: Request, exc: RamsError) -> JSONResponse:
    """Handle domain errors raised by the core."""
    details = None
    if isinstance(exc, ValidationError):
        details = [
            ErrorDetail(code=exc.error_code, message=e.message, field=e.field)
            for e in exc.errors
        ]
    status_code = status_for(exc)
    if status_code >= 500:
        from ..logging import get_logger

        get_logger(__name__).error(f"{exc.error_code}: {exc.message}")

    headers = {"X-Error-Code": exc.error_code}
    if isinstance(exc, AuthenticationError):
        headers["WWW-Authenticate"] = "Bearer"
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=exc.message,
            error_code=exc.error_code,
            details=details,
        ).model_dump(),
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle generic HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            error_code="HTTP_ERROR",
        ).model_dump(),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    from ..logging import get_logger

    logger = get_logger(__name__)
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="An unexpected error occurred",
            error_code="INTERNAL_ERROR",
        ).model_dump(),
        headers={"X-Error-Code": "INTERNAL_ERROR"},
    )


def register_exception_handlers(app):
    """Register exception handlers with the FastAPI app."""
    app.add_exception_handler(RamsError, rams_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
