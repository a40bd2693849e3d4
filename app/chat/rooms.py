"""
Room registry: creation, password-gated join, membership and visibility.

Services:
    RoomRegistry: Room lifecycle against the rooms collection

Design Decisions:
    - The owner is a member from creation
    - Joining is idempotent; a wrong password is a returned failure,
      never an exception or a blocking interruption
    - Leaving is a hook behind settings.CHAT_ROOM_LEAVE_ENABLED
    - Visibility depends only on access level and room restriction

Usage:
    from chat.rooms import RoomRegistry

    registry = RoomRegistry(store)
    result = registry.create(owner, "Book Club", "hunter22", True, "", 48)
    result = registry.join(result.data.id, "hunter22", other_identity)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.utils import timezone

from core.helpers import generate_id
from core.services import BaseService, ServiceResult

from chat.constants import ErrorCode
from chat.types import AccessLevel, Room

if TYPE_CHECKING:
    from chat.store import SessionStore
    from chat.types import Identity


class RoomRegistry(BaseService):
    """
    Service for room operations.

    Methods:
        all: Every persisted room
        get: Look up a room by id
        create: Create a room owned by an identity
        join: Password-gated, idempotent join
        leave: Remove a member (flag-gated)
        visible_to: Filter rooms by access level
        partition: Split rooms into joined / available for an identity
    """

    def __init__(self, store: SessionStore):
        self.store = store

    def all(self) -> list[Room]:
        return self.store.load_rooms()

    def get(self, room_id: str) -> Room | None:
        return next((room for room in self.all() if room.id == room_id), None)

    def create(
        self,
        owner: Identity,
        name: str,
        password: str,
        is_private: bool,
        description: str = "",
        retention_hours: float = 24,
    ) -> ServiceResult[Room]:
        """
        Create a room with owner as its first member.

        Non-admin owners are subject to the AdminConfig room-creation
        policy, when an AdminConfig exists.

        Error codes:
            ROOM_NAME_REQUIRED: Blank room name
            ROOM_PASSWORD_REQUIRED: Blank room password
            INVALID_RETENTION: Retention window is not positive
            ROOM_CREATION_DISABLED: Policy forbids user-created rooms
            ROOM_LIMIT_REACHED: Owner already owns the maximum room count
        """
        name = name.strip() if name else ""
        if not name:
            return self.reject("Room name is required", ErrorCode.ROOM_NAME_REQUIRED)

        password = password.strip() if password else ""
        if not password:
            return self.reject(
                "Room password is required", ErrorCode.ROOM_PASSWORD_REQUIRED
            )

        if retention_hours is None or retention_hours <= 0:
            return self.reject(
                "Retention window must be a positive number of hours",
                ErrorCode.INVALID_RETENTION,
            )

        rooms = self.all()

        admin_config = self.store.load_admin_config()
        if admin_config is not None and not owner.is_admin:
            if not admin_config.allow_user_room_creation:
                return self.reject(
                    "Room creation is disabled",
                    ErrorCode.ROOM_CREATION_DISABLED,
                )
            owned = sum(1 for room in rooms if room.owner_id == owner.id)
            if owned >= admin_config.max_rooms_per_user:
                return self.reject(
                    f"Room limit ({admin_config.max_rooms_per_user}) reached",
                    ErrorCode.ROOM_LIMIT_REACHED,
                )

        now = timezone.now()
        room = Room(
            id=generate_id(),
            name=name,
            password=password,
            owner_id=owner.id,
            created_at=now,
            retention_hours=retention_hours,
            members=[owner.id],
            is_private=is_private,
            description=description or "",
            last_activity=now,
        )
        rooms.append(room)
        self.store.save_rooms(rooms)

        self.get_logger().info(
            f"Identity {owner.id} created {'private' if is_private else 'public'} "
            f"room {room.id} ({room.name})"
        )
        return ServiceResult.success(room)

    def join(
        self,
        room_id: str,
        supplied_password: str,
        identity: Identity,
    ) -> ServiceResult[Room]:
        """
        Join a room with its password.

        Membership is added only if absent; last_activity is refreshed on
        every successful join.

        Error codes:
            ROOM_NOT_FOUND: No room with that id
            ROOM_PASSWORD_MISMATCH: Supplied password differs from the room's
        """
        rooms = self.all()
        room = next((candidate for candidate in rooms if candidate.id == room_id), None)
        if room is None:
            return self.reject("Room not found", ErrorCode.ROOM_NOT_FOUND)

        if supplied_password != room.password:
            return self.reject("Incorrect room password", ErrorCode.ROOM_PASSWORD_MISMATCH)

        added = room.add_member(identity.id)
        room.last_activity = timezone.now()
        self.store.save_rooms(rooms)

        if added:
            self.get_logger().info(f"Identity {identity.id} joined room {room.id}")
        return ServiceResult.success(room)

    def leave(self, room_id: str, identity: Identity) -> ServiceResult[Room]:
        """
        Remove identity from a room's members.

        Error codes:
            ROOM_LEAVE_DISABLED: settings.CHAT_ROOM_LEAVE_ENABLED is off
            ROOM_NOT_FOUND: No room with that id
            OWNER_CANNOT_LEAVE: Owners stay members of their rooms
            NOT_MEMBER: identity is not a member
        """
        if not settings.CHAT_ROOM_LEAVE_ENABLED:
            return self.reject("Leaving rooms is disabled", ErrorCode.ROOM_LEAVE_DISABLED)

        rooms = self.all()
        room = next((candidate for candidate in rooms if candidate.id == room_id), None)
        if room is None:
            return self.reject("Room not found", ErrorCode.ROOM_NOT_FOUND)

        if room.owner_id == identity.id:
            return self.reject("Room owners cannot leave", ErrorCode.OWNER_CANNOT_LEAVE)

        if not room.is_member(identity.id):
            return self.reject("Not a member of this room", ErrorCode.NOT_MEMBER)

        room.members = [member for member in room.members if member != identity.id]
        room.last_activity = timezone.now()
        self.store.save_rooms(rooms)

        self.get_logger().info(f"Identity {identity.id} left room {room.id}")
        return ServiceResult.success(room)

    @staticmethod
    def visible_to(
        rooms: list[Room],
        access_level: str,
        restricted_room_id: str | None = None,
    ) -> list[Room]:
        """
        Filter rooms by what an access level may see.

        ADMIN sees every room, ROOM sees only its restricted room, PUBLIC
        sees only non-private rooms.
        """
        if access_level == AccessLevel.ADMIN:
            return list(rooms)
        if access_level == AccessLevel.ROOM:
            return [room for room in rooms if room.id == restricted_room_id]
        return [room for room in rooms if not room.is_private]

    @staticmethod
    def partition(
        rooms: list[Room],
        identity: Identity,
    ) -> tuple[list[Room], list[Room]]:
        """Split rooms into (joined, available) for identity."""
        joined = [room for room in rooms if room.is_member(identity.id)]
        available = [room for room in rooms if not room.is_member(identity.id)]
        return joined, available
