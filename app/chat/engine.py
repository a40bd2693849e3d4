"""
Chat engine: the session-level state machine.

The engine composes the login flow, room registry, message ledger and
presence service behind the operation surface consumed by the presentation
layer. It owns the in-memory session snapshot while an identity is logged
in; every mutation is written through the session store before the
snapshot is refreshed.

States:
    unauthenticated -> authenticated (login) -> unauthenticated (logout)

Design Principles:
    - Expected failures return ServiceResult.failure()
    - Operations on an unauthenticated engine raise NotAuthenticatedError
    - Admin-only controls re-check access and reject non-admins as no-ops
    - The reply target is transient: never persisted, cleared on send,
      cancel and context switch

Usage:
    from chat.engine import ChatEngine
    from chat.store import DatabaseSessionStore

    engine = ChatEngine(DatabaseSessionStore())
    flow = engine.begin_login()
    flow.submit_password(password)
    result = flow.submit_username("alice")
    engine.login(
        result.data.identity,
        result.data.grant.level,
        result.data.grant.restricted_room_id,
    )
    engine.send_message("Hello everyone!")
    for view in engine.render_visible_messages():
        ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from core.exceptions import NotAuthenticatedError
from core.services import BaseService, ServiceResult

from chat.access import LoginFlow
from chat.constants import CONTEXT_CONFIG, LOGIN_CONFIG, ErrorCode
from chat.ledger import MessageLedger
from chat.presence import PresenceService
from chat.rooms import RoomRegistry
from chat.serializers import MessageSerializer
from chat.types import AccessLevel, ChatContext, ContextType

if TYPE_CHECKING:
    from typing import Any

    from chat.store import SessionStore
    from chat.types import Identity, Message, Room


@dataclass
class ChatState:
    """
    In-memory session snapshot.

    Attributes:
        is_authenticated: Whether an identity is logged in
        current_identity: The logged-in identity
        messages: Live messages as of the last read
        rooms: Rooms as of the last read
        access_level: Access granted at login
        restricted_room_id: The only visible room for ROOM access
        active_context: Where sent messages go
        reply_target_id: Pending reply target (never persisted)
    """

    is_authenticated: bool = False
    current_identity: Identity | None = None
    messages: list[Message] = field(default_factory=list)
    rooms: list[Room] = field(default_factory=list)
    access_level: str = AccessLevel.PUBLIC
    restricted_room_id: str | None = None
    active_context: ChatContext = field(default_factory=ChatContext.general)
    reply_target_id: str | None = None


class ChatEngine(BaseService):
    """
    Session state machine and operation surface.

    Methods:
        begin_login / login / logout: Session lifecycle
        send_message / edit_message / delete_message / react_to_message:
            Message operations in the active context
        pin_message / unpin_message: Admin pinning
        update_retention / update_admin_password: Admin configuration
        switch_context / start_direct_message: Active context changes
        create_room / join_room / leave_room / list_rooms: Rooms
        list_visible_messages / render_visible_messages: Reads
        set_reply_target / clear_reply_target: Reply draft
        set_status / list_present_identities: Presence
    """

    def __init__(self, store: SessionStore):
        self.store = store
        self.ledger = MessageLedger(store)
        self.registry = RoomRegistry(store)
        self.presence = PresenceService(store)
        self.state = ChatState()

    # -------------------------------------------------------------------------
    # Session lifecycle
    # -------------------------------------------------------------------------

    def begin_login(self) -> LoginFlow:
        """Start a login attempt at the password phase."""
        return LoginFlow(self.store)

    def login(
        self,
        identity: Identity,
        access_level: str,
        restricted_room_id: str | None = None,
    ) -> ChatState:
        """
        Enter the authenticated state.

        The active context starts at the restricted room for ROOM access,
        otherwise at the general context.
        """
        rooms = self.registry.all()

        if access_level == AccessLevel.ROOM and restricted_room_id:
            room = next((room for room in rooms if room.id == restricted_room_id), None)
            context = ChatContext(
                id=restricted_room_id,
                type=ContextType.ROOM,
                name=room.name if room else CONTEXT_CONFIG.ROOM_FALLBACK_NAME,
            )
        else:
            restricted_room_id = None
            context = ChatContext.general()

        self.state = ChatState(
            is_authenticated=True,
            current_identity=identity,
            messages=self.ledger.all(),
            rooms=rooms,
            access_level=access_level,
            restricted_room_id=restricted_room_id,
            active_context=context,
        )

        self.get_logger().info(
            f"Identity {identity.id} logged in with {access_level} access"
        )
        return self.state

    def logout(self) -> None:
        """
        Leave the authenticated state.

        The identity is removed from the presence collection and the current
        identity record is cleared. Its messages and saved identity remain.
        """
        identity = self.state.current_identity
        if identity is not None:
            self.presence.remove(identity.id)
            self.get_logger().info(f"Identity {identity.id} logged out")
        self.store.clear_current_identity()
        self.state = ChatState()

    @property
    def current_identity(self) -> Identity:
        return self._require_identity("current_identity")

    @property
    def is_admin(self) -> bool:
        return self.state.is_authenticated and self.state.access_level == AccessLevel.ADMIN

    def _require_identity(self, operation: str) -> Identity:
        if not self.state.is_authenticated or self.state.current_identity is None:
            raise NotAuthenticatedError(
                "Login required",
                details={"operation": operation},
            )
        return self.state.current_identity

    def _require_admin(self, operation: str) -> ServiceResult | None:
        self._require_identity(operation)
        if not self.is_admin:
            return self.reject(
                f"{operation} requires admin access",
                ErrorCode.PERMISSION_DENIED,
            )
        return None

    def _refresh_messages(self) -> None:
        self.state.messages = self.ledger.all()

    def _refresh_rooms(self) -> None:
        self.state.rooms = self.registry.all()

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def send_message(
        self,
        body: str,
        reply_to_id: str | None = None,
    ) -> ServiceResult[Message]:
        """
        Send body to the active context.

        Without an explicit reply_to_id the pending reply target is used.
        The reply target is cleared once the message is sent.
        """
        identity = self._require_identity("send_message")
        reply_to_id = reply_to_id or self.state.reply_target_id

        result = self.ledger.send(
            identity,
            self.state.active_context.id,
            body,
            reply_to_id=reply_to_id,
        )
        if result.success:
            self.state.reply_target_id = None
            self._refresh_messages()
        return result

    def edit_message(self, message_id: str, body: str) -> ServiceResult[Message]:
        identity = self._require_identity("edit_message")
        result = self.ledger.edit(message_id, body, identity)
        if result.success:
            self._refresh_messages()
        return result

    def react_to_message(self, message_id: str, emoji: str) -> ServiceResult[bool]:
        identity = self._require_identity("react_to_message")
        result = self.ledger.react(message_id, identity, emoji)
        if result.success:
            self._refresh_messages()
        return result

    def delete_message(self, message_id: str) -> ServiceResult[Message]:
        """
        Tombstone a message. Allowed to its author and to admins.

        Error codes:
            MESSAGE_NOT_FOUND: No live message with that id
            PERMISSION_DENIED: Neither the author nor an admin
        """
        identity = self._require_identity("delete_message")
        message = self.ledger.get(message_id)
        if message is None:
            return self.reject("Message not found", ErrorCode.MESSAGE_NOT_FOUND)
        if message.author_id != identity.id and not self.is_admin:
            return self.reject(
                "You can only delete your own messages",
                ErrorCode.PERMISSION_DENIED,
            )

        result = self.ledger.soft_delete(message_id)
        if result.success:
            if self.state.reply_target_id == message_id:
                self.state.reply_target_id = None
            self._refresh_messages()
        return result

    def pin_message(self, message_id: str) -> ServiceResult[Message]:
        rejected = self._require_admin("pin_message")
        if rejected is not None:
            return rejected
        result = self.ledger.pin(message_id)
        if result.success:
            self._refresh_messages()
        return result

    def unpin_message(self, message_id: str) -> ServiceResult[Message]:
        rejected = self._require_admin("unpin_message")
        if rejected is not None:
            return rejected
        result = self.ledger.unpin(message_id)
        if result.success:
            self._refresh_messages()
        return result

    def list_visible_messages(self) -> list[Message]:
        """
        Messages of the active context in insertion order.

        Reading sweeps expired messages. A direct-message context shows both
        directions of the pairing.
        """
        identity = self._require_identity("list_visible_messages")
        self._refresh_messages()
        context = self.state.active_context

        if context.type == ContextType.DM:
            partner_id = context.id
            return [
                message
                for message in self.state.messages
                if (message.context_id == partner_id and message.author_id == identity.id)
                or (message.context_id == identity.id and message.author_id == partner_id)
            ]
        return [m for m in self.state.messages if m.context_id == context.id]

    def render_visible_messages(self) -> list[dict[str, Any]]:
        """Visible messages as view dicts; tombstones carry no body."""
        return MessageSerializer(self.list_visible_messages(), many=True).data

    @staticmethod
    def partition_pinned(messages: list[Message]) -> tuple[list[Message], list[Message]]:
        """Split messages into (pinned, unpinned), each in insertion order."""
        pinned = [message for message in messages if message.is_pinned]
        unpinned = [message for message in messages if not message.is_pinned]
        return pinned, unpinned

    # -------------------------------------------------------------------------
    # Reply draft
    # -------------------------------------------------------------------------

    @property
    def reply_target(self) -> Message | None:
        target_id = self.state.reply_target_id
        if target_id is None:
            return None
        return next((m for m in self.state.messages if m.id == target_id), None)

    def set_reply_target(self, message_id: str) -> ServiceResult[Message]:
        self._require_identity("set_reply_target")
        message = self.ledger.get(message_id)
        if message is None:
            return self.reject("Message not found", ErrorCode.MESSAGE_NOT_FOUND)
        self.state.reply_target_id = message.id
        return ServiceResult.success(message)

    def clear_reply_target(self) -> None:
        self.state.reply_target_id = None

    # -------------------------------------------------------------------------
    # Admin configuration
    # -------------------------------------------------------------------------

    def update_retention(self, hours: float) -> ServiceResult[float]:
        """
        Change the general-context retention window.

        Every non-pinned general message restarts its window at the new
        length. Non-admins are rejected without any change.

        Error codes:
            PERMISSION_DENIED: Caller is not an admin
            INVALID_RETENTION: hours is not positive
        """
        rejected = self._require_admin("update_retention")
        if rejected is not None:
            return rejected
        if hours is None or hours <= 0:
            return self.reject(
                "Retention window must be a positive number of hours",
                ErrorCode.INVALID_RETENTION,
            )

        admin_config = self.store.load_admin_config()
        if admin_config is not None:
            admin_config.default_retention_hours = hours
            self.store.save_admin_config(admin_config)

        self.ledger.reset_retention(CONTEXT_CONFIG.GENERAL_ID, hours)
        self._refresh_messages()

        self.get_logger().info(f"General retention set to {hours}h")
        return ServiceResult.success(hours)

    def update_admin_password(self, password: str) -> ServiceResult[None]:
        """
        Change the stored admin credential.

        Error codes:
            PERMISSION_DENIED: Caller is not an admin
            ADMIN_PASSWORD_TOO_SHORT: Fewer than 6 characters after trimming
        """
        rejected = self._require_admin("update_admin_password")
        if rejected is not None:
            return rejected

        password = password.strip() if password else ""
        if len(password) < LOGIN_CONFIG.MIN_ADMIN_PASSWORD_LENGTH:
            return self.reject(
                f"Admin password must be at least "
                f"{LOGIN_CONFIG.MIN_ADMIN_PASSWORD_LENGTH} characters",
                ErrorCode.ADMIN_PASSWORD_TOO_SHORT,
            )

        admin_config = self.store.load_admin_config()
        if admin_config is not None:
            admin_config.admin_password = password
            self.store.save_admin_config(admin_config)

        self.get_logger().info("Admin password updated")
        return ServiceResult.success(None)

    # -------------------------------------------------------------------------
    # Contexts
    # -------------------------------------------------------------------------

    def switch_context(self, context_id: str, context_type: str, name: str) -> ChatContext:
        """Make context_id the active context and drop any pending reply target."""
        self._require_identity("switch_context")
        self.state.active_context = ChatContext(id=context_id, type=context_type, name=name)
        self.state.reply_target_id = None
        return self.state.active_context

    def start_direct_message(self, identity: Identity) -> ServiceResult[ChatContext]:
        """
        Switch to the direct-message context with identity.

        Error codes:
            DIRECT_MESSAGES_DISABLED: Caller has ROOM access
        """
        self._require_identity("start_direct_message")
        if self.state.access_level == AccessLevel.ROOM:
            return self.reject(
                "Direct messages are not available with room access",
                ErrorCode.DIRECT_MESSAGES_DISABLED,
            )
        return ServiceResult.success(
            self.switch_context(identity.id, ContextType.DM, identity.username)
        )

    # -------------------------------------------------------------------------
    # Rooms
    # -------------------------------------------------------------------------

    def visible_rooms(self) -> list[Room]:
        self._require_identity("visible_rooms")
        self._refresh_rooms()
        return RoomRegistry.visible_to(
            self.state.rooms,
            self.state.access_level,
            self.state.restricted_room_id,
        )

    def list_rooms(self) -> tuple[list[Room], list[Room]]:
        """Visible rooms split into (joined, available)."""
        identity = self._require_identity("list_rooms")
        return RoomRegistry.partition(self.visible_rooms(), identity)

    def create_room(
        self,
        name: str,
        password: str,
        is_private: bool,
        description: str = "",
        retention_hours: float = 24,
    ) -> ServiceResult[Room]:
        """Create a room owned by the caller and make it the active context."""
        identity = self._require_identity("create_room")
        result = self.registry.create(
            identity,
            name,
            password,
            is_private,
            description,
            retention_hours,
        )
        if result.success:
            self._refresh_rooms()
            room = result.data
            self.switch_context(room.id, ContextType.ROOM, room.name)
        return result

    def join_room(self, room_id: str, password: str | None = None) -> ServiceResult[Room]:
        """
        Join a visible room and make it the active context.

        Members may omit the password: the room's stored password is
        re-supplied for rooms they already belong to.

        Error codes:
            ROOM_NOT_FOUND: No such room visible to the caller
            ROOM_PASSWORD_MISMATCH: Wrong password
        """
        identity = self._require_identity("join_room")
        room = next((room for room in self.visible_rooms() if room.id == room_id), None)
        if room is None:
            return self.reject("Room not found", ErrorCode.ROOM_NOT_FOUND)

        if password is None:
            password = room.password if room.is_member(identity.id) else ""

        result = self.registry.join(room_id, password, identity)
        if result.success:
            self._refresh_rooms()
            self.switch_context(result.data.id, ContextType.ROOM, result.data.name)
        return result

    def leave_room(self, room_id: str) -> ServiceResult[Room]:
        """Leave a room; leaving the active room falls back to the general context."""
        identity = self._require_identity("leave_room")
        result = self.registry.leave(room_id, identity)
        if result.success:
            self._refresh_rooms()
            if self.state.active_context.id == room_id:
                self.state.active_context = ChatContext.general()
                self.state.reply_target_id = None
        return result

    # -------------------------------------------------------------------------
    # Presence
    # -------------------------------------------------------------------------

    def set_status(self, status: str) -> ServiceResult[Identity]:
        identity = self._require_identity("set_status")
        return self.presence.set_status(identity, status)

    def list_present_identities(self) -> list[Identity]:
        self._require_identity("list_present_identities")
        return self.presence.present()
