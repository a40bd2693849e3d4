"""
Tests for the chat engine session state machine.

This module tests:
- Session lifecycle: login, logout, unauthenticated calls
- Message operations in the active context
- Admin-only controls
- Context switching and direct messages
- Room operations through the engine

Test Organization:
    - Each area has its own test class
    - Sessions sharing one store stand in for separate collaborators
"""

from datetime import timedelta

import pytest
from django.utils import timezone
from freezegun import freeze_time

from core.exceptions import NotAuthenticatedError, PermissionDeniedError

from chat.constants import ErrorCode
from chat.engine import ChatEngine
from chat.tests.factories import MessageFactory, PinnedMessageFactory
from chat.types import AccessLevel, ContextType, PresenceStatus


# =============================================================================
# TestSessionLifecycle
# =============================================================================


class TestSessionLifecycle:
    """
    Tests for login() and logout().

    Verifies:
    - Initial context per access level
    - Logout clears presence and the current identity but keeps history
    - Operations require an authenticated session
    """

    def test_public_login_starts_in_general(self, engine, login):
        identity = login(engine, "alice")

        assert engine.state.is_authenticated is True
        assert engine.state.current_identity == identity
        assert engine.state.access_level == AccessLevel.PUBLIC
        assert engine.state.active_context.id == "general"
        assert engine.state.active_context.type == ContextType.GENERAL

    def test_room_login_starts_in_restricted_room(self, engine, login, private_room):
        login(engine, "guest", password="hunter22")

        assert engine.state.access_level == AccessLevel.ROOM
        assert engine.state.restricted_room_id == private_room.id
        assert engine.state.active_context.id == private_room.id
        assert engine.state.active_context.name == "Book Club"

    def test_room_login_with_unknown_room_uses_fallback_name(self, engine, alice):
        engine.login(alice, AccessLevel.ROOM, "missing")

        assert engine.state.active_context.name == "Room"

    def test_logout_removes_presence_and_keeps_history(self, engine, login, store):
        """
        Logout marks the identity offline without deleting anything else.

        Why it matters: Logging back in restores the same identity and its
        messages remain visible to others.
        """
        identity = login(engine, "alice")
        engine.send_message("bye")

        engine.logout()

        assert engine.state.is_authenticated is False
        assert store.load_users() == []
        assert store.load_current_identity() is None
        assert store.load_saved_identity("alice").id == identity.id
        assert [m.body for m in store.load_messages()] == ["bye"]

    def test_unauthenticated_operation_raises(self, engine):
        with pytest.raises(NotAuthenticatedError) as exc_info:
            engine.send_message("hi")

        assert exc_info.value.error_code == ErrorCode.NOT_AUTHENTICATED
        assert exc_info.value.details == {"operation": "send_message"}
        assert isinstance(exc_info.value, PermissionDeniedError)

    def test_begin_login_starts_fresh_flow(self, engine):
        assert engine.begin_login().phase == "password"


# =============================================================================
# TestEngineMessages
# =============================================================================


class TestEngineMessages:
    """
    Tests for message operations through the engine.

    Verifies:
    - Messages go to the active context
    - Reply target is used and then cleared
    - Delete is allowed to the author and admins only
    """

    def test_send_goes_to_active_context(self, engine, login):
        login(engine, "alice")

        result = engine.send_message("Hello!")

        assert result.data.context_id == "general"
        assert engine.state.messages == [result.data]

    def test_send_uses_and_clears_reply_target(self, engine, login):
        login(engine, "alice")
        original = engine.send_message("Question?").data
        engine.set_reply_target(original.id)

        assert engine.reply_target.id == original.id

        reply = engine.send_message("Answer").data

        assert reply.reply_to_id == original.id
        assert engine.state.reply_target_id is None

    def test_failed_send_keeps_reply_target(self, engine, login):
        login(engine, "alice")
        original = engine.send_message("Question?").data
        engine.set_reply_target(original.id)

        engine.send_message("   ")

        assert engine.state.reply_target_id == original.id

    def test_clear_reply_target(self, engine, login):
        login(engine, "alice")
        original = engine.send_message("Question?").data
        engine.set_reply_target(original.id)

        engine.clear_reply_target()

        assert engine.reply_target is None

    def test_set_reply_target_requires_existing_message(self, engine, login):
        login(engine, "alice")

        result = engine.set_reply_target("missing")

        assert result.error_code == ErrorCode.MESSAGE_NOT_FOUND

    def test_edit_and_react(self, engine, other_engine, login):
        login(engine, "alice")
        login(other_engine, "bob")
        message = engine.send_message("helo").data

        assert engine.edit_message(message.id, "hello").success
        assert other_engine.edit_message(message.id, "hijack").error_code == ErrorCode.NOT_AUTHOR
        assert other_engine.react_to_message(message.id, "👍").data is True

        view = engine.render_visible_messages()[0]
        assert view["body"] == "hello"
        assert view["is_edited"] is True
        assert list(view["reactions"]) == ["👍"]

    def test_author_can_delete(self, engine, login):
        login(engine, "alice")
        message = engine.send_message("oops").data

        result = engine.delete_message(message.id)

        assert result.success is True
        assert engine.render_visible_messages()[0]["body"] is None

    def test_other_identity_cannot_delete(self, engine, other_engine, login):
        login(engine, "alice")
        login(other_engine, "bob")
        message = engine.send_message("mine").data

        result = other_engine.delete_message(message.id)

        assert result.error_code == ErrorCode.PERMISSION_DENIED
        assert engine.list_visible_messages()[0].is_deleted is False

    def test_admin_can_delete_any_message(self, admin_engine, other_engine, login):
        login(other_engine, "bob")
        message = other_engine.send_message("spam").data

        assert admin_engine.delete_message(message.id).success is True

    def test_deleting_reply_target_clears_it(self, engine, login):
        login(engine, "alice")
        message = engine.send_message("x").data
        engine.set_reply_target(message.id)

        engine.delete_message(message.id)

        assert engine.state.reply_target_id is None


# =============================================================================
# TestAdminControls
# =============================================================================


class TestAdminControls:
    """
    Tests for admin-only engine operations.

    Verifies:
    - Non-admin calls are rejected without side effects
    - Admin retention change applies to new and existing general messages
    """

    def test_non_admin_pin_is_rejected(self, engine, login):
        login(engine, "alice")
        message = engine.send_message("pin me").data

        result = engine.pin_message(message.id)

        assert result.error_code == ErrorCode.PERMISSION_DENIED
        assert engine.list_visible_messages()[0].is_pinned is False

    def test_non_admin_unpin_is_rejected(self, admin_engine, other_engine, login):
        message = admin_engine.send_message("rules").data
        admin_engine.pin_message(message.id)
        login(other_engine, "bob")

        result = other_engine.unpin_message(message.id)

        assert result.error_code == ErrorCode.PERMISSION_DENIED
        assert other_engine.list_visible_messages()[0].is_pinned is True

    def test_room_guest_cannot_use_admin_controls(
        self, engine, login, store, admin_config, private_room
    ):
        """
        Room-level access never reaches admin-only mutators.

        Why it matters: Admin checks live in the engine as well as the UI,
        so a restricted guest cannot change shared settings.
        """
        login(engine, "guest", password="hunter22")

        assert engine.update_retention(1).error_code == ErrorCode.PERMISSION_DENIED
        assert engine.update_admin_password("hijacked").error_code == ErrorCode.PERMISSION_DENIED
        config = store.load_admin_config()
        assert config.default_retention_hours == 24
        assert config.admin_password == "secret1"

    def test_admin_pin_and_unpin(self, admin_engine):
        message = admin_engine.send_message("rules").data

        admin_engine.pin_message(message.id)
        pinned = admin_engine.list_visible_messages()[0]
        assert pinned.is_pinned is True
        assert pinned.expires_at is None

        admin_engine.unpin_message(message.id)
        assert admin_engine.list_visible_messages()[0].expires_at is not None

    def test_non_admin_retention_change_is_no_op(self, engine, login, store, admin_config):
        login(engine, "alice")

        result = engine.update_retention(1)

        assert result.error_code == ErrorCode.PERMISSION_DENIED
        assert store.load_admin_config().default_retention_hours == 24

    def test_retention_change_scenario(self, admin_engine, store):
        """
        Admin sets general retention to one hour.

        Why it matters: New general messages must pick up the new window and
        expire on schedule.
        """
        with freeze_time("2024-01-01 12:00:00"):
            assert admin_engine.update_retention(1).success is True
            message = admin_engine.send_message("short-lived").data
            assert message.expires_at == timezone.now() + timedelta(hours=1)

        with freeze_time("2024-01-01 12:30:00"):
            assert [m.id for m in admin_engine.list_visible_messages()] == [message.id]

        with freeze_time("2024-01-01 14:00:00"):
            assert admin_engine.list_visible_messages() == []

        assert store.load_admin_config().default_retention_hours == 1

    def test_retention_change_resets_existing_messages(self, admin_engine):
        with freeze_time("2024-01-01 12:00:00"):
            message = admin_engine.send_message("old").data

        with freeze_time("2024-01-01 18:00:00"):
            admin_engine.update_retention(2)
            stored = admin_engine.list_visible_messages()[0]

            assert stored.id == message.id
            assert stored.expires_at == timezone.now() + timedelta(hours=2)

    def test_non_positive_retention_is_rejected(self, admin_engine):
        assert admin_engine.update_retention(0).error_code == ErrorCode.INVALID_RETENTION

    def test_update_admin_password(self, admin_engine, store):
        assert admin_engine.update_admin_password(" newpass1 ").success is True
        assert store.load_admin_config().admin_password == "newpass1"

    def test_short_admin_password_is_rejected(self, admin_engine, store):
        result = admin_engine.update_admin_password("abc")

        assert result.error_code == ErrorCode.ADMIN_PASSWORD_TOO_SHORT

    def test_non_admin_password_change_is_no_op(self, engine, login, store, admin_config):
        login(engine, "alice")

        result = engine.update_admin_password("hijacked")

        assert result.error_code == ErrorCode.PERMISSION_DENIED
        assert store.load_admin_config().admin_password == "secret1"

    def test_partition_pinned(self, alice):
        pinned = PinnedMessageFactory(author=alice)
        plain = MessageFactory(author=alice)

        assert ChatEngine.partition_pinned([plain, pinned]) == ([pinned], [plain])


# =============================================================================
# TestContexts
# =============================================================================


class TestContexts:
    """Tests for switch_context() and start_direct_message()."""

    def test_switch_context_clears_reply_target(self, engine, login):
        login(engine, "alice")
        message = engine.send_message("x").data
        engine.set_reply_target(message.id)

        context = engine.switch_context("room-1", ContextType.ROOM, "Room 1")

        assert engine.state.active_context == context
        assert engine.state.reply_target_id is None

    def test_direct_messages_show_both_directions(self, engine, other_engine, login):
        """
        A direct-message context shows messages sent either way.

        Why it matters: Each side addresses the other's identity id, so
        filtering by one context id alone would hide half the conversation.
        """
        alice = login(engine, "alice")
        bob = login(other_engine, "bob")
        engine.send_message("in general")

        engine.start_direct_message(bob)
        other_engine.start_direct_message(alice)
        engine.send_message("hi bob")
        other_engine.send_message("hi alice")

        assert [m.body for m in engine.list_visible_messages()] == ["hi bob", "hi alice"]
        assert [m.body for m in other_engine.list_visible_messages()] == [
            "hi bob",
            "hi alice",
        ]

    def test_direct_messages_disabled_for_room_access(self, engine, login, private_room, bob):
        login(engine, "guest", password="hunter22")

        result = engine.start_direct_message(bob)

        assert result.error_code == ErrorCode.DIRECT_MESSAGES_DISABLED
        assert engine.state.active_context.id == private_room.id


# =============================================================================
# TestEngineRooms
# =============================================================================


class TestEngineRooms:
    """
    Tests for room operations through the engine.

    Verifies:
    - Creating a room switches to it
    - Joining respects visibility and passwords
    - Members re-enter without retyping the password
    """

    def test_create_room_switches_context(self, engine, login):
        login(engine, "alice")

        room = engine.create_room("Book Club", "hunter22", True, "Books", 48).data

        assert engine.state.active_context.id == room.id
        assert engine.state.active_context.type == ContextType.ROOM
        assert engine.send_message("first!").data.expires_at is not None

    def test_join_public_room(self, engine, other_engine, login):
        login(engine, "alice")
        room = engine.create_room("Lobby", "lobby-pass", False).data
        login(other_engine, "bob")

        result = other_engine.join_room(room.id, "lobby-pass")

        assert result.success is True
        assert other_engine.state.active_context.id == room.id
        joined, available = other_engine.list_rooms()
        assert [r.id for r in joined] == [room.id]
        assert available == []

    def test_wrong_room_password_keeps_context(self, engine, other_engine, login):
        login(engine, "alice")
        room = engine.create_room("Lobby", "lobby-pass", False).data
        login(other_engine, "bob")

        result = other_engine.join_room(room.id, "wrong")

        assert result.error_code == ErrorCode.ROOM_PASSWORD_MISMATCH
        assert other_engine.state.active_context.id == "general"

    def test_member_rejoins_without_password(self, engine, login):
        login(engine, "alice")
        room = engine.create_room("Lobby", "lobby-pass", False).data
        engine.switch_context("general", ContextType.GENERAL, "General Chat")

        result = engine.join_room(room.id)

        assert result.success is True
        assert engine.state.active_context.id == room.id

    def test_private_room_hidden_from_public_access(self, engine, other_engine, login):
        login(engine, "alice")
        room = engine.create_room("Secret", "hunter22", True).data
        login(other_engine, "bob")

        assert other_engine.list_rooms() == ([], [])
        assert other_engine.join_room(room.id, "hunter22").error_code == ErrorCode.ROOM_NOT_FOUND

    def test_room_access_sees_only_its_room(self, engine, login, private_room, public_room):
        login(engine, "guest", password="hunter22")

        joined, available = engine.list_rooms()

        assert joined == []
        assert [room.id for room in available] == [private_room.id]
        assert engine.join_room(public_room.id, "lobby-pass").error_code == ErrorCode.ROOM_NOT_FOUND

    def test_admin_sees_private_rooms(self, admin_engine, private_room):
        joined, available = admin_engine.list_rooms()

        assert [room.id for room in available] == [private_room.id]

    def test_leave_active_room_falls_back_to_general(
        self, engine, other_engine, login, settings
    ):
        settings.CHAT_ROOM_LEAVE_ENABLED = True
        login(engine, "alice")
        room = engine.create_room("Lobby", "lobby-pass", False).data
        login(other_engine, "bob")
        other_engine.join_room(room.id, "lobby-pass")

        result = other_engine.leave_room(room.id)

        assert result.success is True
        assert other_engine.state.active_context.id == "general"


# =============================================================================
# TestEnginePresence
# =============================================================================


class TestEnginePresence:
    def test_set_status_and_list_present(self, engine, other_engine, login):
        login(engine, "alice")
        login(other_engine, "bob")

        engine.set_status(PresenceStatus.BUSY)

        present = {user.username: user.status for user in other_engine.list_present_identities()}
        assert present == {"alice": PresenceStatus.BUSY, "bob": PresenceStatus.ONLINE}
