"""
Presence tracking on the local users collection.

Presence is a locally recorded flag, not a live heartbeat. An identity is
present while it appears in the users collection; logging out removes it.
A client that closes without logging out stays present indefinitely unless
the expiry sweep is enabled.

Services:
    PresenceService: Present identities, status changes, removal

Expiry hook:
    With settings.CHAT_PRESENCE_EXPIRY_ENABLED, reading the present
    identities first drops entries whose last_seen is older than
    settings.CHAT_PRESENCE_TTL_SECONDS. It is off by default.

Usage:
    from chat.presence import PresenceService

    presence = PresenceService(store)
    presence.set_status(identity, PresenceStatus.AWAY)
    present = presence.present()
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.utils import timezone

from core.services import BaseService, ServiceResult

from chat.constants import ErrorCode
from chat.types import PresenceStatus

if TYPE_CHECKING:
    from datetime import datetime

    from chat.store import SessionStore
    from chat.types import Identity


def sweep_stale_presence(
    users: list[Identity],
    now: datetime,
    ttl_seconds: int,
) -> tuple[list[Identity], int]:
    """
    Drop identities not seen within ttl_seconds.

    Identities without a last_seen timestamp fall back to joined_at.

    Returns:
        (remaining identities, number removed)
    """
    cutoff = now - timedelta(seconds=ttl_seconds)
    kept = [user for user in users if (user.last_seen or user.joined_at) >= cutoff]
    return kept, len(users) - len(kept)


class PresenceService(BaseService):
    """
    Service for the presence collection.

    Methods:
        present: Present identities (after the optional expiry sweep)
        set_status: Record a presence status for an identity
        remove: Drop an identity from the presence collection
    """

    def __init__(self, store: SessionStore):
        self.store = store

    def present(self) -> list[Identity]:
        users = self.store.load_users()
        if not settings.CHAT_PRESENCE_EXPIRY_ENABLED:
            return users

        kept, removed = sweep_stale_presence(
            users,
            timezone.now(),
            settings.CHAT_PRESENCE_TTL_SECONDS,
        )
        if removed:
            self.store.save_users(kept)
            self.get_logger().info(f"Expired presence for {removed} identit(ies)")
        return kept

    def set_status(self, identity: Identity, status: str) -> ServiceResult[Identity]:
        """
        Record status for identity and refresh its last_seen.

        Error codes:
            INVALID_STATUS: status is not a PresenceStatus value
        """
        if status not in PresenceStatus.values:
            return self.reject(f"Invalid status: {status}", ErrorCode.INVALID_STATUS)

        identity.status = status
        identity.last_seen = timezone.now()

        users = [user for user in self.store.load_users() if user.id != identity.id]
        users.append(identity)
        self.store.save_users(users)
        self.store.save_current_identity(identity)
        self.store.save_saved_identity(identity.username, identity)

        self.get_logger().debug(f"Identity {identity.id} is now {status}")
        return ServiceResult.success(identity)

    def remove(self, identity_id: str) -> bool:
        """Remove identity_id from the presence collection."""
        users = self.store.load_users()
        remaining = [user for user in users if user.id != identity_id]
        if len(remaining) == len(users):
            return False
        self.store.save_users(remaining)
        return True
