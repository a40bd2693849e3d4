"""
Base exception classes for application-wide error handling.

This module provides a standardized exception hierarchy that enables:
- Consistent error reporting across the application
- Machine-readable error codes for caller handling
- Detailed error information for debugging

Exception Hierarchy:
    BaseApplicationError (base)
    └── PermissionDeniedError - Authorization failures and session misuse
        └── NotAuthenticatedError - Session operation before login

Usage:
    from core.exceptions import PermissionDeniedError

    # Raise with error code for caller handling
    raise PermissionDeniedError("Login required", error_code="NOT_AUTHENTICATED")

Note:
    These exceptions are for unexpected failures. Expected, recoverable
    failures (wrong password, username taken) are returned as
    core.services.ServiceResult failures instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for caller-side handling
        details: Additional error context (field errors, metadata, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description
            error_code: Machine-readable error code (defaults to class default)
            details: Additional error context
        """
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when the caller may not perform an operation at all.

    Use for:
    - Session operations attempted without an authenticated identity
    - Programming errors where a caller bypasses the expected flow

    Example:
        if not state.is_authenticated:
            raise PermissionDeniedError(
                "Login required",
                error_code="NOT_AUTHENTICATED",
                details={"operation": "send_message"},
            )

    Note:
        Admin-only controls invoked by non-admins are not exceptional:
        they are rejected with a failed ServiceResult.
    """

    default_error_code: str = "PERMISSION_DENIED"


class NotAuthenticatedError(PermissionDeniedError):
    """
    Raised when a session operation is called before login.

    Example:
        raise NotAuthenticatedError(
            "Login required",
            details={"operation": "send_message"},
        )
    """

    default_error_code: str = "NOT_AUTHENTICATED"
