"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error responses across the application
- Machine-readable error codes for client handling
- A coarse kind (core.services.ErrorKind) per exception, shared with
  ServiceResult so both paths map onto the same HTTP statuses

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures
    ├── NotFoundError - Resource not found
    ├── PermissionDeniedError - Authorization failures
    ├── ConflictError - State conflicts (duplicates, invalid transitions)
    ├── RateLimitError - Per-user action throttles
    └── InternalError - Store or network faults

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError("Conversation not found", error_code="CONVERSATION_NOT_FOUND")

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=e.status_code)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, etc.).
    application_exception_handler turns everything else into an opaque
    INTERNAL_ERROR response.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from rest_framework.exceptions import Throttled
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.services import HTTP_STATUS_BY_KIND, ErrorKind

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (field errors, metadata, etc.)
        kind: Coarse failure category
    """

    default_error_code: str = "APPLICATION_ERROR"
    kind: str = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to the API error envelope.

        Example:
            {
                "ok": False,
                "error": {
                    "code": "CONVERSATION_NOT_FOUND",
                    "kind": "NOT_FOUND",
                    "message": "Conversation not found",
                },
            }
        """
        error: dict[str, Any] = {
            "code": self.error_code,
            "kind": str(self.kind),
            "message": self.message,
        }
        if self.details:
            error["details"] = self.details
        return {"ok": False, "error": error}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails.

    Use for malformed input: wrong type, length or missing required field.
    For DRF serializer validation, use DRF's built-in validation.
    """

    default_error_code: str = "VALIDATION_ERROR"
    kind = ErrorKind.VALIDATION


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Consider returning empty results for list queries.
    Use NotFoundError for single-resource lookups where existence is expected.
    """

    default_error_code: str = "NOT_FOUND"
    kind = ErrorKind.NOT_FOUND


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller lacks permission for an operation.

    For authentication failures (missing/invalid token), use DRF's
    AuthenticationFailed. Use this for authorization failures.
    """

    default_error_code: str = "PERMISSION_DENIED"
    kind = ErrorKind.PERMISSION_DENIED


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current resource state.

    Use for:
    - Duplicate entries (already a participant, already banned)
    - Invalid state transitions (already locked, already deleted)
    - Expired windows (edit window)

    HTTP 409 Conflict is the appropriate status for these errors.
    """

    default_error_code: str = "CONFLICT"
    kind = ErrorKind.CONFLICT


class RateLimitError(BaseApplicationError):
    """
    Raised when a per-user action rate is exceeded.

    DRF throttles raise Throttled; application_exception_handler converts
    it to this error so clients get the usual envelope. details carries
    retry_after (seconds) when DRF knows it.
    """

    default_error_code: str = "RATE_LIMITED"
    kind = ErrorKind.RATE_LIMITED


class InternalError(BaseApplicationError):
    """
    Raised for store or network faults.

    The message is surfaced to clients, so never put implementation
    details in it; log the original exception instead.
    """

    default_error_code: str = "INTERNAL_ERROR"
    kind = ErrorKind.INTERNAL


EXCEPTION_BY_KIND: dict[str, type[BaseApplicationError]] = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.PERMISSION_DENIED: PermissionDeniedError,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.RATE_LIMITED: RateLimitError,
    ErrorKind.INTERNAL: InternalError,
}


def application_exception_handler(exc: Exception, context: dict) -> Response | None:
    """
    DRF exception handler.

    Application errors render with their own status and envelope. DRF
    throttling renders as RATE_LIMITED in the same envelope, keeping the
    Retry-After header. Other DRF exceptions (authentication, parse errors)
    keep DRF's handling. Anything else is logged and rendered as an opaque 500.
    """
    if isinstance(exc, BaseApplicationError):
        return Response(exc.to_dict(), status=exc.status_code)

    if isinstance(exc, Throttled):
        wait = math.ceil(exc.wait) if exc.wait is not None else None
        error = RateLimitError(
            "Too many requests. Please wait before trying again.",
            details={"retry_after": wait} if wait is not None else None,
        )
        response = Response(error.to_dict(), status=error.status_code)
        if wait is not None:
            response["Retry-After"] = str(wait)
        return response

    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.exception(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}"
    )
    return Response(
        InternalError("An internal error occurred").to_dict(),
        status=500,
    )
