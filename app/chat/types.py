"""
Domain types for the chat core.

This module defines the enumerations and dataclasses that flow between the
session store, the services and the presentation layer. Records are plain
dataclasses; they are persisted as whole collections through
chat.store and validated on the way back in by chat.serializers.

Types:
    AccessLevel: Coarse authorization granted at login
    ContextType: Kind of chat context (general, direct message, room)
    PresenceStatus: Locally recorded presence flag
    LoginPhase: Phases of the login state machine
    Identity: A participant's durable profile
    Message: A single chat message (tombstoned, never removed, on delete)
    Room: A password-gated chat room
    AdminConfig: Process-wide admin record written once at bootstrap
    AccessGrant: Result of resolving a submitted password
    IdentityResolution: Result of a completed login
    ChatContext: Addressable target of messages

Usage:
    from chat.types import AccessLevel, Message, Room

    grant = AccessGrant(level=AccessLevel.ROOM, restricted_room_id=room.id)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from django.db import models

from chat.constants import CONTEXT_CONFIG


class AccessLevel(models.TextChoices):
    """
    Authorization granted at login.

    ADMIN: Sees every room, may change retention and the admin password
    ROOM: Restricted to a single private room, no direct messages
    PUBLIC: Sees the general context, public rooms and direct messages
    """

    ADMIN = "admin", "Admin"
    ROOM = "room", "Room"
    PUBLIC = "public", "Public"


class ContextType(models.TextChoices):
    """Kind of chat context a message is addressed to."""

    GENERAL = "general", "General"
    DM = "dm", "Direct Message"
    ROOM = "room", "Room"


class PresenceStatus(models.TextChoices):
    """
    Presence flag recorded for identities in the presence collection.

    Logging out removes the identity from the collection instead of
    recording an offline status.
    """

    ONLINE = "online", "Online"
    AWAY = "away", "Away"
    BUSY = "busy", "Busy"


class LoginPhase(models.TextChoices):
    """
    Phases of the login state machine.

    PASSWORD -> USERNAME -> ACTIVE, with ADMIN_SETUP inserted before ACTIVE
    the first time the reserved admin username is chosen.
    """

    PASSWORD = "password", "Password"
    USERNAME = "username", "Username"
    ADMIN_SETUP = "admin_setup", "Admin Setup"
    ACTIVE = "active", "Active"


@dataclass
class Identity:
    """
    A chat participant's durable profile.

    Usernames are unique, case-insensitively, among identities currently
    present in the presence collection.
    """

    id: str
    username: str
    color: str
    joined_at: datetime
    last_seen: datetime | None = None
    is_admin: bool = False
    status: str = PresenceStatus.ONLINE

    @property
    def username_key(self) -> str:
        """Case-insensitive lookup key for this identity's username."""
        return self.username.lower()


@dataclass
class Message:
    """
    A chat message.

    Author username and color are copied at send time and never re-derived.

    Invariants:
        - is_pinned implies expires_at is None
        - a deleted message keeps its id and metadata but its body is never
          rendered (see chat.serializers.MessageSerializer)
    """

    id: str
    author_id: str
    author_username: str
    author_color: str
    body: str
    created_at: datetime
    context_id: str
    expires_at: datetime | None = None
    reply_to_id: str | None = None
    reactions: dict[str, list[str]] = field(default_factory=dict)
    is_deleted: bool = False
    is_pinned: bool = False
    is_edited: bool = False
    edited_at: datetime | None = None

    def is_expired(self, now: datetime) -> bool:
        """Whether the retention window has elapsed for this message."""
        if self.is_pinned or self.expires_at is None:
            return False
        return self.expires_at <= now

    def pin(self) -> None:
        """Pin the message; pinned messages never expire."""
        self.is_pinned = True
        self.expires_at = None

    def unpin(self, expires_at: datetime | None) -> None:
        """Unpin the message with a freshly computed expiry."""
        self.is_pinned = False
        self.expires_at = expires_at

    def toggle_reaction(self, identity_id: str, emoji: str) -> bool:
        """
        Toggle identity_id's reaction under emoji.

        Returns:
            True if the reaction was added, False if it was removed
        """
        reactors = self.reactions.get(emoji, [])
        if identity_id in reactors:
            remaining = [reactor for reactor in reactors if reactor != identity_id]
            if remaining:
                self.reactions[emoji] = remaining
            else:
                # Empty emoji keys are dropped entirely
                self.reactions.pop(emoji, None)
            return False

        self.reactions[emoji] = [*reactors, identity_id]
        return True


@dataclass
class Room:
    """
    A password-gated chat room.

    The owner is a member from creation. Membership only grows unless the
    leave operation is enabled.
    """

    id: str
    name: str
    password: str
    owner_id: str
    created_at: datetime
    retention_hours: float
    members: list[str] = field(default_factory=list)
    is_private: bool = False
    description: str = ""
    last_activity: datetime | None = None

    def is_member(self, identity_id: str) -> bool:
        return identity_id in self.members

    def add_member(self, identity_id: str) -> bool:
        """Add identity_id to the members; returns False if already present."""
        if self.is_member(identity_id):
            return False
        self.members.append(identity_id)
        return True


@dataclass
class AdminConfig:
    """
    Process-wide admin record.

    Its existence signals that the admin bootstrap has completed.
    """

    admin_password: str
    default_retention_hours: float
    allow_user_room_creation: bool = True
    max_rooms_per_user: int = 5
    welcome_message: str = ""


@dataclass(frozen=True)
class AccessGrant:
    """Access level produced by the password phase of login."""

    level: str
    restricted_room_id: str | None = None


@dataclass(frozen=True)
class IdentityResolution:
    """Outcome of a completed login: who logged in and with which access."""

    identity: Identity
    grant: AccessGrant
    restored: bool = False


@dataclass(frozen=True)
class ChatContext:
    """The active chat context of a session."""

    id: str
    type: str
    name: str

    @classmethod
    def general(cls) -> ChatContext:
        return cls(
            id=CONTEXT_CONFIG.GENERAL_ID,
            type=ContextType.GENERAL,
            name=CONTEXT_CONFIG.GENERAL_NAME,
        )
