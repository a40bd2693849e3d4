"""
Helper functions for common infrastructure operations.

This module provides domain-agnostic utility functions for:
- Identifier generation
- Timestamp arithmetic

These utilities are pure infrastructure - they have no knowledge
of domain concepts like identities, rooms, or messages.

Usage:
    from core.helpers import generate_id, hours_from

    message_id = generate_id()
    expires_at = hours_from(timezone.now(), 24)
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta


def generate_id() -> str:
    """
    Generate a random identifier.

    Returns:
        32-character hexadecimal string (UUID4 without dashes)

    Example:
        room_id = generate_id()  # "9f1c2e..."
    """
    return uuid.uuid4().hex


def hours_from(start: datetime, hours: int | float) -> datetime:
    """
    Return the timestamp a number of hours after start.

    Args:
        start: Reference timestamp
        hours: Offset in hours (fractions allowed)

    Returns:
        start + hours
    """
    return start + timedelta(hours=hours)
