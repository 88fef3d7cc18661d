"""
Typed lifecycle errors and the global handlers that render them.

Every error raised by the request ledger, session ledger and lifecycle engine
is a ``LifecycleError`` subclass and reaches the API layer unchanged.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)

_TIMEOUT_MARKERS = (
    "timeout",
    "timed out",
    "database is locked",
    "canceling statement",
    "lock_timeout",
)


class LifecycleError(Exception):
    """Base class for errors surfaced by the booking lifecycle."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(LifecycleError):
    """Referenced user, request or session does not exist."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id},
        )


class PermissionDeniedError(LifecycleError):
    """Actor lacks rights over the record."""

    def __init__(self, message: str = "Not authorized for this record", details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERMISSION",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
        )


class ValidationError(LifecycleError):
    """Malformed input. ``field`` names the offending input."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"field": field} if field else {},
        )
        self.field = field


class InvalidOperationError(LifecycleError):
    """Semantically illegal transition."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="ERR_INVALID_OPERATION",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class ConflictError(LifecycleError):
    """A concurrent transition on the same record won the race."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            error_code="ERR_CONFLICT",
            status_code=status.HTTP_409_CONFLICT,
            details=details,
        )


class DependencyTimeoutError(LifecycleError):
    """An identity, ledger or gateway call exceeded its bound."""

    def __init__(self, dependency: str):
        super().__init__(
            message="A dependent service did not respond in time. Please retry.",
            error_code="ERR_DEPENDENCY_TIMEOUT",
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        )
        self.dependency = dependency


def _is_timeout(exc: OperationalError) -> bool:
    text = str(getattr(exc, "orig", exc)).lower()
    return any(marker in text for marker in _TIMEOUT_MARKERS)


@contextmanager
def dependency_guard(dependency: str) -> Iterator[None]:
    """Translate bounded-wait failures from the database layer into DependencyTimeoutError."""
    try:
        yield
    except PoolTimeoutError as exc:
        logger.error("Dependency '%s' pool checkout timed out: %s", dependency, exc)
        raise DependencyTimeoutError(dependency) from exc
    except OperationalError as exc:
        if not _is_timeout(exc):
            raise
        logger.error("Dependency '%s' timed out: %s", dependency, exc)
        raise DependencyTimeoutError(dependency) from exc


# Global Exception Handlers

async def lifecycle_exception_handler(request: Request, exc: LifecycleError) -> JSONResponse:
    """Handler for typed lifecycle errors."""
    if isinstance(exc, DependencyTimeoutError):
        logger.error(
            "Dependency timeout on %s (dependency=%s, cause=%r)",
            getattr(request, "url", "<internal>"),
            exc.dependency,
            exc.__cause__,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with the same response shape."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER",
    }
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code_map.get(exc.status_code, "ERR_UNKNOWN"),
            "message": exc.detail,
            "details": {},
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for request-schema validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {"errors": jsonable_encoder(exc.errors())},
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions. The cause stays in server logs."""
    logger.exception("Unhandled exception: %s", type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {},
        },
    )
