"""
Constants and configuration for the chat module.

This module centralizes configuration values for:
- Login policy (username and admin password rules)
- Identity presentation defaults (color palette)
- Retention defaults for admin bootstrap
- Storage keys for the persisted collections
- Machine-readable error codes

Deployment-specific values (master passphrase, feature flags) live in
Django settings; see config.settings.
Import example:
    from chat.constants import LOGIN_CONFIG, STORAGE_KEYS, ErrorCode
"""

from typing import Final


# =============================================================================
# Login Configuration
# =============================================================================


class LOGIN_CONFIG:
    """Configuration for the login flow."""

    MIN_USERNAME_LENGTH: Final[int] = 2
    MIN_ADMIN_PASSWORD_LENGTH: Final[int] = 6


# =============================================================================
# Identity Configuration
# =============================================================================


class IDENTITY_CONFIG:
    """Presentation defaults assigned when an identity is minted."""

    ADMIN_COLOR: Final[str] = "#FF6B6B"

    COLOR_PALETTE: Final[tuple] = (
        "#FF6B6B",
        "#4ECDC4",
        "#45B7D1",
        "#96CEB4",
        "#FFEAA7",
        "#DDA0DD",
        "#98D8C8",
        "#F7DC6F",
        "#BB8FCE",
        "#85C1E9",
        "#F8C471",
        "#82E0AA",
        "#AED6F1",
        "#D7BDE2",
        "#F9E79F",
    )


# =============================================================================
# Admin Bootstrap Defaults
# =============================================================================


class ADMIN_DEFAULTS:
    """Values written into AdminConfig by the one-time admin setup."""

    DEFAULT_RETENTION_HOURS: Final[int] = 24
    ALLOW_USER_ROOM_CREATION: Final[bool] = True
    MAX_ROOMS_PER_USER: Final[int] = 5
    WELCOME_MESSAGE: Final[str] = "Welcome to SecureChat!"


# =============================================================================
# Context Configuration
# =============================================================================


class CONTEXT_CONFIG:
    """Well-known chat contexts."""

    GENERAL_ID: Final[str] = "general"
    GENERAL_NAME: Final[str] = "General Chat"
    ROOM_FALLBACK_NAME: Final[str] = "Room"


# =============================================================================
# Storage Keys
# =============================================================================


class STORAGE_KEYS:
    """Fixed identifiers of the persisted collections."""

    MESSAGES: Final[str] = "chatroom_messages"
    USERS: Final[str] = "chatroom_users"
    CURRENT_USER: Final[str] = "chatroom_current_user"
    CHAT_ROOMS: Final[str] = "chatroom_rooms"
    USER_SESSIONS: Final[str] = "chatroom_user_sessions"
    ADMIN_CONFIG: Final[str] = "chatroom_admin_config"


# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode:
    """Machine-readable codes carried by failed ServiceResults."""

    # Login
    INVALID_CREDENTIAL = "INVALID_CREDENTIAL"
    INVALID_ADMIN_CREDENTIALS = "INVALID_ADMIN_CREDENTIALS"
    USERNAME_TOO_SHORT = "USERNAME_TOO_SHORT"
    USERNAME_IN_USE = "USERNAME_IN_USE"
    ADMIN_PASSWORD_TOO_SHORT = "ADMIN_PASSWORD_TOO_SHORT"
    ADMIN_SETUP_REQUIRED = "ADMIN_SETUP_REQUIRED"
    ADMIN_ALREADY_CONFIGURED = "ADMIN_ALREADY_CONFIGURED"
    INVALID_PHASE = "INVALID_PHASE"

    # Rooms
    ROOM_PASSWORD_MISMATCH = "ROOM_PASSWORD_MISMATCH"
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    ROOM_NAME_REQUIRED = "ROOM_NAME_REQUIRED"
    ROOM_PASSWORD_REQUIRED = "ROOM_PASSWORD_REQUIRED"
    INVALID_RETENTION = "INVALID_RETENTION"
    ROOM_CREATION_DISABLED = "ROOM_CREATION_DISABLED"
    ROOM_LIMIT_REACHED = "ROOM_LIMIT_REACHED"
    ROOM_LEAVE_DISABLED = "ROOM_LEAVE_DISABLED"
    OWNER_CANNOT_LEAVE = "OWNER_CANNOT_LEAVE"
    NOT_MEMBER = "NOT_MEMBER"

    # Messages
    MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"
    EMPTY_CONTENT = "EMPTY_CONTENT"
    NOT_AUTHOR = "NOT_AUTHOR"
    MESSAGE_DELETED = "MESSAGE_DELETED"
    INVALID_EMOJI = "INVALID_EMOJI"
    INVALID_REPLY_TARGET = "INVALID_REPLY_TARGET"

    # Session
    PERMISSION_DENIED = "PERMISSION_DENIED"
    DIRECT_MESSAGES_DISABLED = "DIRECT_MESSAGES_DISABLED"
    INVALID_STATUS = "INVALID_STATUS"
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
