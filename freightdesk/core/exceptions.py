"""
Domain error taxonomy and global exception handlers.

Services raise ``AppError`` subclasses; the handlers below turn them (and
anything unexpected) into ``{"success": false, "message": ...}`` bodies
without leaking stack traces to clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


# ── Taxonomy ────────────────────────────────────────────────────────
class AppError(Exception):
    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing input."""

    status_code = 400
    default_message = "Invalid request"


class AuthError(AppError):
    """Missing, invalid or expired credential."""

    status_code = 401
    default_message = "Invalid credentials"


class Unauthorized(AuthError):
    default_message = "Not authorized to access this route"


class Forbidden(AppError):
    status_code = 403
    default_message = "Not permitted"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class InvalidState(AppError):
    """Operation not legal for the resource's current lifecycle state."""

    status_code = 400
    default_message = "Operation not allowed in the current state"


class InvalidTokenError(AppError):
    status_code = 400
    default_message = "Invalid or expired token"


class DeliveryError(AppError):
    """A best-effort side channel (email) failed."""

    status_code = 500
    default_message = "Delivery failed"


class InternalError(AppError):
    status_code = 500
    default_message = "Server error"


# ── Handlers ────────────────────────────────────────────────────────
def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


async def _app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s: %s", type(exc).__name__, exc.message)
    return _error(exc.status_code, exc.message)


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


async def _request_validation_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = first.get("msg", "Invalid request")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        if field:
            message = f"{field}: {message}"
    else:
        message = "Invalid request"
    return _error(400, message)


async def _rate_limit_handler(_request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return _error(429, f"Too many requests: {exc.detail}")


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return _error(409, "Database constraint violation")


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return _error(500, "Internal database error")


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _error(500, "Server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(AppError, _app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
