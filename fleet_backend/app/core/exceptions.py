"""
Custom exceptions and error handlers for consistent error responses.

Every failure reaches the client as the uniform action envelope
``{"success": false, "error": ..., "error_code": ...}``.
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger("fleet.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class UnauthenticatedError(AppException):
    """Raised when no valid identity could be resolved."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class AccountInactiveError(AppException):
    """Raised when the identity resolved but the account is not active."""

    def __init__(self, account_status: str):
        super().__init__(
            message=f"User account is {account_status}",
            error_code="ERR_AUTH_003",
            status_code=status.HTTP_403_FORBIDDEN,
            details={"status": account_status}
        )


class PermissionDeniedError(AppException):
    """Raised when a role or ownership check fails."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class ResourceNotFoundError(AppException):
    """Raised when a referenced resource is absent or soft-deleted."""

    def __init__(self, resource: str, resource_id: Any = None):
        super().__init__(
            message=f"{resource} not found",
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource}
        )
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(AppException):
    """Raised when a uniqueness invariant would be violated."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_CONFLICT_001",
            status_code=status.HTTP_409_CONFLICT,
            details=details
        )


class InvalidStateTransitionError(AppException):
    """Raised when a status change is not part of the state machine."""

    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Cannot change status from {current} to {target}",
            error_code="ERR_STATE_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"current": current, "target": target}
        )


class InvalidFieldError(AppException):
    """Raised when a field value is unusable after normalization."""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=f"Validation error: {field} {message}",
            error_code="ERR_VALIDATION",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"field": field}
        )


def failure_envelope(message: str, error_code: str) -> Dict[str, Any]:
    return {"success": False, "error": message, "error_code": error_code}


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=failure_envelope(exc.message, exc.error_code)
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content=failure_envelope(str(exc.detail), error_code),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"Validation error: {field} {first.get('msg', '')}".strip()
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=failure_envelope(message, "ERR_VALIDATION")
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions. Never leaks internals to the client."""
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "exception_type": type(exc).__name__}
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=failure_envelope("An internal server error occurred", "ERR_INTERNAL_SERVER")
    )
