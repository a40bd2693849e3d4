"""
Message ledger: message creation, mutation and expiration.

Services:
    MessageLedger: Message lifecycle against the messages collection

Retention rule:
    A message addressed to a room expires room.retention_hours after the
    moment the rule is evaluated. Any other context (general, direct
    message) uses AdminConfig.default_retention_hours, falling back to
    settings.CHAT_DEFAULT_RETENTION_HOURS before the admin bootstrap.
    Pinned messages never expire; unpinning starts a fresh window.

Sweep:
    Every read of the full collection drops expired, non-pinned messages
    and writes the pruned collection back when anything was removed. There
    is no background timer.

Usage:
    from chat.ledger import MessageLedger

    ledger = MessageLedger(store)
    result = ledger.send(identity, "general", "Hello!")
    messages = ledger.list_for("general")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.utils import timezone

from core.helpers import generate_id, hours_from
from core.services import BaseService, ServiceResult

from chat.constants import CONTEXT_CONFIG, ErrorCode
from chat.types import Message

if TYPE_CHECKING:
    from datetime import datetime

    from chat.store import SessionStore
    from chat.types import Identity


def sweep_expired(
    messages: list[Message],
    now: datetime,
) -> tuple[list[Message], int]:
    """
    Drop expired messages.

    A message is kept iff it has no expiry, its expiry is in the future,
    or it is pinned.

    Returns:
        (kept messages in original order, number removed)
    """
    kept = [message for message in messages if not message.is_expired(now)]
    return kept, len(messages) - len(kept)


class MessageLedger(BaseService):
    """
    Service for message operations.

    Methods:
        all: Full collection, swept
        get: Look up a message by id
        list_for: Messages of one context in insertion order
        send: Append a new message
        edit: Author-only body edit
        soft_delete: Tombstone a message
        pin / unpin: Toggle pinning and expiry
        react: Toggle a reaction
        retention_hours_for: Retention window for a context
        reset_retention: Restart the window for a context's messages
    """

    def __init__(self, store: SessionStore):
        self.store = store

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def all(self) -> list[Message]:
        """Return every live message, compacting expired ones first."""
        messages = self.store.load_messages()
        kept, removed = sweep_expired(messages, timezone.now())
        if removed:
            self.store.save_messages(kept)
            self.get_logger().info(f"Swept {removed} expired message(s)")
        return kept

    def get(self, message_id: str) -> Message | None:
        return next((m for m in self.all() if m.id == message_id), None)

    def list_for(self, context_id: str) -> list[Message]:
        return [message for message in self.all() if message.context_id == context_id]

    # -------------------------------------------------------------------------
    # Retention
    # -------------------------------------------------------------------------

    def retention_hours_for(self, context_id: str) -> float:
        """Retention window, in hours, for messages addressed to context_id."""
        if context_id != CONTEXT_CONFIG.GENERAL_ID:
            room = next(
                (room for room in self.store.load_rooms() if room.id == context_id),
                None,
            )
            if room is not None:
                return room.retention_hours

        admin_config = self.store.load_admin_config()
        if admin_config is not None:
            return admin_config.default_retention_hours
        return settings.CHAT_DEFAULT_RETENTION_HOURS

    def expiry_for(self, context_id: str, now: datetime) -> datetime:
        return hours_from(now, self.retention_hours_for(context_id))

    def reset_retention(self, context_id: str, hours: float) -> int:
        """
        Restart the retention window of every non-pinned message in context_id.

        Returns:
            Number of messages whose expiry changed
        """
        messages = self.all()
        expires_at = hours_from(timezone.now(), hours)
        changed = 0
        for message in messages:
            if message.context_id == context_id and not message.is_pinned:
                message.expires_at = expires_at
                changed += 1
        if changed:
            self.store.save_messages(messages)
        self.get_logger().info(
            f"Reset retention to {hours}h for {changed} message(s) in {context_id}"
        )
        return changed

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def send(
        self,
        author: Identity,
        context_id: str,
        body: str,
        reply_to_id: str | None = None,
    ) -> ServiceResult[Message]:
        """
        Append a new message to context_id.

        Author username and color are copied onto the message.

        Error codes:
            EMPTY_CONTENT: Body is blank
            INVALID_REPLY_TARGET: reply_to_id names no live message
        """
        body = body.strip() if body else ""
        if not body:
            return self.reject("Message content cannot be empty", ErrorCode.EMPTY_CONTENT)

        messages = self.all()

        if reply_to_id is not None and not any(m.id == reply_to_id for m in messages):
            return self.reject("Reply target not found", ErrorCode.INVALID_REPLY_TARGET)

        now = timezone.now()
        message = Message(
            id=generate_id(),
            author_id=author.id,
            author_username=author.username,
            author_color=author.color,
            body=body,
            created_at=now,
            context_id=context_id,
            expires_at=self.expiry_for(context_id, now),
            reply_to_id=reply_to_id,
        )
        messages.append(message)
        self.store.save_messages(messages)

        self.get_logger().debug(
            f"Identity {author.id} sent message {message.id} to {context_id}"
        )
        return ServiceResult.success(message)

    def _locate(
        self,
        message_id: str,
    ) -> tuple[list[Message], Message | None]:
        messages = self.all()
        return messages, next((m for m in messages if m.id == message_id), None)

    def edit(
        self,
        message_id: str,
        new_body: str,
        acting: Identity,
    ) -> ServiceResult[Message]:
        """
        Replace a message's body. Only the original author may edit.

        Editing never touches expiry.

        Error codes:
            EMPTY_CONTENT: New body is blank
            MESSAGE_NOT_FOUND: No live message with that id
            MESSAGE_DELETED: Message is tombstoned
            NOT_AUTHOR: acting is not the author
        """
        new_body = new_body.strip() if new_body else ""
        if not new_body:
            return self.reject("Message content cannot be empty", ErrorCode.EMPTY_CONTENT)

        messages, message = self._locate(message_id)
        if message is None:
            return self.reject("Message not found", ErrorCode.MESSAGE_NOT_FOUND)
        if message.is_deleted:
            return self.reject("Cannot edit deleted messages", ErrorCode.MESSAGE_DELETED)
        if message.author_id != acting.id:
            return self.reject("You can only edit your own messages", ErrorCode.NOT_AUTHOR)

        message.body = new_body
        message.is_edited = True
        message.edited_at = timezone.now()
        self.store.save_messages(messages)

        self.get_logger().info(f"Identity {acting.id} edited message {message.id}")
        return ServiceResult.success(message)

    def soft_delete(self, message_id: str) -> ServiceResult[Message]:
        """
        Tombstone a message.

        Body, reactions and timestamps are kept for ordering and reply
        integrity; renderers must not show them.

        Error codes:
            MESSAGE_NOT_FOUND: No live message with that id
            MESSAGE_DELETED: Message is already tombstoned
        """
        messages, message = self._locate(message_id)
        if message is None:
            return self.reject("Message not found", ErrorCode.MESSAGE_NOT_FOUND)
        if message.is_deleted:
            return self.reject("Message is already deleted", ErrorCode.MESSAGE_DELETED)

        message.is_deleted = True
        self.store.save_messages(messages)

        self.get_logger().info(f"Deleted message {message.id}")
        return ServiceResult.success(message)

    def pin(self, message_id: str) -> ServiceResult[Message]:
        """Pin a message and clear its expiry."""
        messages, message = self._locate(message_id)
        if message is None:
            return self.reject("Message not found", ErrorCode.MESSAGE_NOT_FOUND)

        message.pin()
        self.store.save_messages(messages)

        self.get_logger().info(f"Pinned message {message.id}")
        return ServiceResult.success(message)

    def unpin(self, message_id: str) -> ServiceResult[Message]:
        """Unpin a message; its expiry restarts from now under the retention rule."""
        messages, message = self._locate(message_id)
        if message is None:
            return self.reject("Message not found", ErrorCode.MESSAGE_NOT_FOUND)

        message.unpin(self.expiry_for(message.context_id, timezone.now()))
        self.store.save_messages(messages)

        self.get_logger().info(f"Unpinned message {message.id}")
        return ServiceResult.success(message)

    def react(
        self,
        message_id: str,
        identity: Identity,
        emoji: str,
    ) -> ServiceResult[bool]:
        """
        Toggle identity's reaction under emoji.

        Returns:
            ServiceResult with True if the reaction was added, False if removed

        Error codes:
            INVALID_EMOJI: Blank emoji
            MESSAGE_NOT_FOUND: No live message with that id
            MESSAGE_DELETED: Message is tombstoned
        """
        emoji = emoji.strip() if emoji else ""
        if not emoji:
            return self.reject("Invalid emoji", ErrorCode.INVALID_EMOJI)

        messages, message = self._locate(message_id)
        if message is None:
            return self.reject("Message not found", ErrorCode.MESSAGE_NOT_FOUND)
        if message.is_deleted:
            return self.reject("Cannot react to deleted messages", ErrorCode.MESSAGE_DELETED)

        added = message.toggle_reaction(identity.id, emoji)
        self.store.save_messages(messages)

        self.get_logger().debug(
            f"Identity {identity.id} {'added' if added else 'removed'} "
            f"{emoji} on message {message.id}"
        )
        return ServiceResult.success(added)
