"""
Core Application - Infrastructure & Base Classes

This app contains infrastructure code that provides a foundation for the
chat domain app. It holds generic, reusable base classes with no
chat-specific logic.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - PermissionDeniedError: Authorization failures
    - NotAuthenticatedError: Session operations before login

Helpers (import from core.helpers):
    - generate_id: Random hexadecimal identifiers
    - hours_from: Timestamp arithmetic in whole hours
"""
