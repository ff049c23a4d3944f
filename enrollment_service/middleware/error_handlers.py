"""Centralized error handling with consistent response formatting.

Every error leaves the service in the same envelope:

    {"error": {"category": ..., "code": ..., "detail": ..., "suggestions"?, "metadata"?}}

Store failures are logged with their traceback but only a generic detail is
returned to the caller.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from psycopg.errors import (
    CheckViolation as CheckViolationError,
    ForeignKeyViolation as ForeignKeyViolationError,
    NotNullViolation as NotNullViolationError,
    UniqueViolation as UniqueViolationError,
)
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, OperationalError

from enrollment_service.exceptions import ConflictError, ResourceNotFoundError


logger = logging.getLogger(__name__)


# === Error Categories ===


class ErrorCategory:
    """Error category constants."""

    VALIDATION = "VALIDATION_ERROR"
    DATABASE = "DATABASE_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONFLICT = "CONFLICT_ERROR"
    RATE_LIMIT = "RATE_LIMIT_ERROR"
    INTERNAL = "INTERNAL_ERROR"


class ErrorCode:
    """Specific error codes for better client handling."""

    # Validation errors
    INVALID_INPUT = "INVALID_INPUT"

    # Database errors
    DB_CONNECTION_FAILED = "DB_CONNECTION_FAILED"
    DB_CONSTRAINT_VIOLATION = "DB_CONSTRAINT_VIOLATION"
    DB_UNIQUE_VIOLATION = "DB_UNIQUE_VIOLATION"
    DB_FOREIGN_KEY_VIOLATION = "DB_FOREIGN_KEY_VIOLATION"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Rate limiting
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Internal errors
    INTERNAL = "INTERNAL_ERROR"


# === Error Response Formatting ===


def format_error_response(
    category: str,
    code: str,
    detail: str,
    status_code: int,
    suggestions: list[str] | None = None,
    metadata: dict[str, Any] | None = None,
) -> JSONResponse:
    """Format a consistent error response."""
    content: dict[str, Any] = {
        "error": {
            "category": category,
            "code": code,
            "detail": detail,
        }
    }

    if suggestions:
        content["error"]["suggestions"] = suggestions

    if metadata:
        content["error"]["metadata"] = metadata

    return JSONResponse(status_code=status_code, content=content)


async def handle_request_validation_errors(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed path, query or body input as 400."""
    logger.info(f"Validation error on {request.method} {request.url.path}", extra={"error": str(exc)})

    errors = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    return format_error_response(
        category=ErrorCategory.VALIDATION,
        code=ErrorCode.INVALID_INPUT,
        detail="Invalid input data",
        status_code=status.HTTP_400_BAD_REQUEST,
        metadata={"errors": errors},
    )


async def handle_rate_limit_errors(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle requests rejected by the rate limiter."""
    logger.warning(f"Rate limit exceeded on {request.method} {request.url.path}: {exc.detail}")

    response = format_error_response(
        category=ErrorCategory.RATE_LIMIT,
        code=ErrorCode.RATE_LIMIT_EXCEEDED,
        detail=f"Rate limit exceeded: {exc.detail}",
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        suggestions=["Please wait before retrying"],
    )
    # Retry-After / X-RateLimit-* headers when the limiter has them enabled
    return request.app.state.limiter._inject_headers(response, getattr(request.state, "view_rate_limit", None))


async def handle_not_found_errors(request: Request, exc: ResourceNotFoundError) -> JSONResponse:
    """Handle missing courses, users and enrollments."""
    logger.info(f"{exc.resource_type} {exc.resource_id} not found on {request.method} {request.url.path}")

    return format_error_response(
        category=ErrorCategory.RESOURCE_NOT_FOUND,
        code=ErrorCode.NOT_FOUND,
        detail=exc.message,
        status_code=status.HTTP_404_NOT_FOUND,
    )


async def handle_conflict_errors(request: Request, exc: ConflictError) -> JSONResponse:
    """Handle writes rejected by a uniqueness rule."""
    logger.info(f"Conflict on {request.method} {request.url.path}: {exc.message}")

    return format_error_response(
        category=ErrorCategory.CONFLICT,
        code=ErrorCode.ALREADY_EXISTS,
        detail=exc.message,
        status_code=status.HTTP_409_CONFLICT,
    )


def _is_unique_violation(exc: Exception) -> bool:
    orig = getattr(exc, "orig", None)
    if isinstance(orig, UniqueViolationError):
        return True
    return isinstance(exc, IntegrityError) and "unique" in str(exc).lower()


async def handle_database_errors(request: Request, exc: Exception) -> JSONResponse:
    """Handle database-related errors."""
    logger.exception(
        f"Database error on {request.method} {request.url.path}: {exc}",
        extra={"error_type": type(exc).__name__},
        exc_info=(type(exc), exc, exc.__traceback__),
    )

    orig = getattr(exc, "orig", None)

    if _is_unique_violation(exc):
        return format_error_response(
            category=ErrorCategory.DATABASE,
            code=ErrorCode.DB_UNIQUE_VIOLATION,
            detail="This resource already exists",
            status_code=status.HTTP_409_CONFLICT,
        )

    if isinstance(orig, ForeignKeyViolationError):
        return format_error_response(
            category=ErrorCategory.DATABASE,
            code=ErrorCode.DB_FOREIGN_KEY_VIOLATION,
            detail="Referenced resource does not exist",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(orig, (NotNullViolationError, CheckViolationError)):
        return format_error_response(
            category=ErrorCategory.DATABASE,
            code=ErrorCode.DB_CONSTRAINT_VIOLATION,
            detail="Required data is missing or invalid",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, OperationalError):
        return format_error_response(
            category=ErrorCategory.DATABASE,
            code=ErrorCode.DB_CONNECTION_FAILED,
            detail="Database connection error",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            suggestions=["Please try again later"],
        )

    return format_error_response(
        category=ErrorCategory.DATABASE,
        code=ErrorCode.INTERNAL,
        detail="A database error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# === Utility Functions ===


def log_error_context(request: Request, exc: Exception, error_id: UUID | None = None) -> None:
    """Log comprehensive error context for debugging."""
    context = {
        "error_id": str(error_id) if error_id else None,
        "method": request.method,
        "path": request.url.path,
        "query_params": dict(request.query_params),
        "client_host": request.client.host if request.client else "unknown",
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    # Add request headers (excluding sensitive ones)
    safe_headers = {
        k: v for k, v in request.headers.items() if k.lower() not in ["authorization", "cookie", "x-api-key"]
    }
    context["headers"] = safe_headers

    logger.error("Request failed", extra=context, exc_info=exc)
