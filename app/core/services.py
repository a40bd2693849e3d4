"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from storage and presentation.
    The presentation layer calls services, stores hold bytes, services decide.

Pattern Comparison:
    - ServiceResult: Use for expected failures (validation, business rules,
      rejected actions such as a wrong room password)
    - Exceptions: Use for unexpected failures (programming errors, misuse)

Usage:
    from core.services import BaseService, ServiceResult

    class RoomRegistry(BaseService):
        def join(self, room_id, password, identity) -> ServiceResult[Room]:
            room = self.get(room_id)
            if room is None:
                return self.reject("Room not found", "ROOM_NOT_FOUND")
            ...
            self.get_logger().info(f"Identity {identity.id} joined room {room.id}")
            return ServiceResult.success(room)

    # In the caller
    result = registry.join(room_id, password, identity)
    if result.success:
        show(result.data)
    else:
        redisplay(result.error, result.error_code)

Related:
    - core.exceptions: For unexpected/exceptional errors
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Generic, TypeVar

# Generic type for ServiceResult data
T = TypeVar("T")


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
        error_code: Machine-readable error code for caller handling
        errors: Field-level errors for validation failures

    Usage:
        # Success case
        return ServiceResult.success(message)

        # Failure case
        return ServiceResult.failure("Username already in use", "USERNAME_IN_USE")

        # Check result
        result = flow.submit_username(username)
        if result.success:
            identity = result.data.identity
        else:
            print(f"Error: {result.error} ({result.error_code})")

    Note:
        This pattern is inspired by Result types in Rust/Swift.
        It makes error handling explicit without try/except blocks.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
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
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for caller handling
            errors: Field-level errors (for validation failures)

        Returns:
            ServiceResult with success=False and error details

        Example:
            return ServiceResult.failure(
                "Admin password must be at least 6 characters",
                error_code="ADMIN_PASSWORD_TOO_SHORT",
                errors={"password": ["Too short"]},
            )
        """
        return cls(
            success=False,
            error=error,
            error_code=error_code,
            errors=errors,
        )

    def __bool__(self) -> bool:
        """
        Allow using result in boolean context.

        Example:
            if engine.join_room(room_id, password):  # Same as: .success
                ...
        """
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Consistent logging of rejected actions

    Chat services are bound to a session store at construction so tests can
    inject an in-memory store; they keep no other state between calls.

    Usage:
        class MessageLedger(BaseService):
            def __init__(self, store):
                self.store = store

            def soft_delete(self, message_id):
                ...
                self.get_logger().info(f"Deleted message {message_id}")
                return ServiceResult.success(message)

    Design Notes:
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
    def reject(
        cls,
        error: str,
        error_code: str,
        log_level: int = logging.INFO,
        errors: dict[str, list[str]] | None = None,
    ) -> ServiceResult:
        """
        Log a rejected action and return it as a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code
            log_level: Logging level (default INFO)
            errors: Optional field-level errors

        Returns:
            ServiceResult.failure with the given details
        """
        cls.get_logger().log(log_level, f"Rejected: {error} ({error_code})")
        return ServiceResult.failure(error, error_code=error_code, errors=errors)
