"""
End-to-end journeys over the durable session store.

Each test drives several engines against one DatabaseSessionStore, the way
several browser sessions share the same local storage.
"""

import pytest

from chat.constants import ErrorCode
from chat.engine import ChatEngine
from chat.store import DatabaseSessionStore
from chat.tests.factories import MASTER_PASSPHRASE, IdentityFactory
from chat.types import AccessLevel, ContextType, LoginPhase


@pytest.fixture
def db_store(db):
    return DatabaseSessionStore()


def new_session(store):
    return ChatEngine(store)


@pytest.mark.django_db
class TestChatJourneys:
    """
    Full user journeys.

    Verifies:
    - Admin bootstrap, private room creation and room-password login
    - Identity restoration across logout and login
    - Room-restricted sessions never see the general context's rooms
    """

    def test_admin_creates_private_room_and_guest_joins(self, db_store, login):
        """
        The admin's private room becomes a login credential of its own.

        Why it matters: Room passwords are how outsiders are invited into a
        single room without seeing the rest of the chat.
        """
        admin = new_session(db_store)
        flow = admin.begin_login()
        flow.submit_password(MASTER_PASSPHRASE)
        flow.submit_username("admin")
        assert flow.phase == LoginPhase.ADMIN_SETUP
        result = flow.submit_admin_password(MASTER_PASSPHRASE)
        admin.login(result.data.identity, result.data.grant.level)

        room = admin.create_room("War Room", "letmein", True, "Ops only", 12).data
        admin.send_message("Agenda at noon")

        guest = new_session(db_store)
        login(guest, "guest", password="letmein")

        assert guest.state.access_level == AccessLevel.ROOM
        assert guest.state.active_context.id == room.id
        assert [m.body for m in guest.list_visible_messages()] == ["Agenda at noon"]

        guest.send_message("On my way")
        assert [m.body for m in admin.list_visible_messages()] == [
            "Agenda at noon",
            "On my way",
        ]

        public = new_session(db_store)
        login(public, "alice")
        assert public.list_rooms() == ([], [])

    def test_identity_restored_after_logout(self, db_store, login):
        first = new_session(db_store)
        alice = login(first, "alice")
        first.send_message("remember me")
        first.logout()

        second = new_session(db_store)
        restored = login(second, "ALICE")

        assert restored.id == alice.id
        assert restored.color == alice.color
        assert second.list_visible_messages()[0].author_id == alice.id

    def test_present_unsaved_username_is_taken(self, db_store):
        db_store.save_users([IdentityFactory(username="carol")])

        flow = new_session(db_store).begin_login()
        flow.submit_password(MASTER_PASSPHRASE)
        result = flow.submit_username("Carol")

        assert result.error_code == ErrorCode.USERNAME_IN_USE
        assert flow.phase == LoginPhase.USERNAME

    def test_room_guest_cannot_open_direct_messages(self, db_store, login):
        owner = new_session(db_store)
        alice = login(owner, "alice")
        owner.create_room("Book Club", "hunter22", True)

        guest = new_session(db_store)
        login(guest, "guest", password="hunter22")

        assert guest.start_direct_message(alice).error_code == ErrorCode.DIRECT_MESSAGES_DISABLED
        assert guest.state.active_context.type == ContextType.ROOM
