"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ErrorKind: Coarse failure taxonomy shared by every service
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views and models.
    Views handle HTTP concerns, models handle data, services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected failures (validation, business rules)
    - Exceptions: Use for unexpected failures (database errors, bugs)

Usage:
    from core.services import BaseService, ErrorKind, ServiceResult

    class ConversationService(BaseService):
        @classmethod
        def join(cls, conversation_id, user) -> ServiceResult[Participant]:
            if Participant.objects.filter(...).exists():
                return ServiceResult.failure(
                    "Already a participant",
                    error_code="ALREADY_PARTICIPANT",
                    error_kind=ErrorKind.CONFLICT,
                )

            with cls.atomic():
                participant = Participant.objects.create(...)

            cls.get_logger().info(f"User {user.id} joined {conversation_id}")
            return ServiceResult.success(participant)

    # In view
    result = ConversationService.join(conversation_id, request.user)
    if result.success:
        return Response({"ok": True, "data": ...}, status=201)
    return Response(result.to_response(), status=result.http_status)

Related:
    - core.exceptions: For unexpected/exceptional errors
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import models, transaction

if TYPE_CHECKING:
    from collections.abc import Generator
    from typing import Any

# Generic type for ServiceResult data
T = TypeVar("T")


class ErrorKind(models.TextChoices):
    """
    Failure taxonomy used to map service failures onto transport statuses.

    Codes are fine-grained and stable (NOT_AUTHOR, CONVERSATION_LOCKED, ...);
    kinds are coarse and drive HTTP status selection.
    """

    VALIDATION = "VALIDATION", "Validation"
    NOT_FOUND = "NOT_FOUND", "Not found"
    PERMISSION_DENIED = "PERMISSION_DENIED", "Permission denied"
    CONFLICT = "CONFLICT", "Conflict"
    RATE_LIMITED = "RATE_LIMITED", "Rate limited"
    INTERNAL = "INTERNAL", "Internal"


HTTP_STATUS_BY_KIND: dict[str, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.INTERNAL: 500,
}


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.
    Use this for expected failures (validation errors, business rule violations).

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        error_kind: Coarse failure category (see ErrorKind)
        errors: Field-level errors for validation failures

    Usage:
        # Success case
        return ServiceResult.success(conversation)

        # Failure case
        return ServiceResult.failure(
            "Conversation is locked",
            error_code="CONVERSATION_LOCKED",
            error_kind=ErrorKind.PERMISSION_DENIED,
        )

        # Check result
        result = MessageService.send_message(...)
        if result.success:
            message = result.data
        else:
            print(f"Error: {result.error} ({result.error_code})")
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    error_kind: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
        error_kind: str | None = None,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
            error_kind: Failure category; defaults to VALIDATION when field
                errors are given, INTERNAL otherwise

        Returns:
            ServiceResult with success=False and error details
        """
        if error_kind is None:
            error_kind = ErrorKind.VALIDATION if errors else ErrorKind.INTERNAL
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            error_kind=str(error_kind),
            errors=errors,
        )

    @property
    def http_status(self) -> int:
        """HTTP status matching this result (200 on success)."""
        if self.success:
            return 200
        return HTTP_STATUS_BY_KIND.get(self.error_kind, 500)

    def to_response(self) -> dict[str, Any]:
        """
        Convert to the API envelope.

        Returns:
            {"ok": True, "data": ...} or
            {"ok": False, "error": {"code", "kind", "message"[, "fields"]}}
        """
        if self.success:
            return {"ok": True, "data": self.data}

        error: dict[str, Any] = {
            "code": self.error_code,
            "kind": self.error_kind,
            "message": self.error,
        }
        if self.errors:
            error["fields"] = self.errors
        return {"ok": False, "error": error}

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Database transaction management

    Design Notes:
        - Use @staticmethod or @classmethod (no instance state)
        - Services should be stateless
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls, savepoint: bool = True) -> Generator[None, None, None]:
        """
        Execute operations in a database transaction.

        All database operations within this context manager are
        wrapped in a transaction. If any operation fails, all
        changes are rolled back.

        Example:
            with cls.atomic():
                message = Message.objects.create(...)
                Conversation.objects.filter(pk=...).update(...)
                # If the conversation update fails, the message is rolled back
        """
        with transaction.atomic(savepoint=savepoint):
            yield
