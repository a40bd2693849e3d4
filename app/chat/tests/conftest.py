"""
Test configuration and fixtures for chat tests.

This module provides:
- An in-memory session store (no database access)
- Identity, room and admin config fixtures
- Engine fixtures and a helper that logs an engine in through the login flow

Usage:
    def test_example(engine, login):
        login(engine, "alice")
        result = engine.send_message("Hello!")
        assert result.success
"""

import pytest

from chat.engine import ChatEngine
from chat.store import InMemorySessionStore
from chat.tests.factories import (
    MASTER_PASSPHRASE,
    AdminConfigFactory,
    AdminIdentityFactory,
    IdentityFactory,
    PrivateRoomFactory,
    RoomFactory,
)
from chat.types import LoginPhase


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def chat_settings(settings):
    """Pin chat settings so local environment overrides never leak into tests."""
    settings.CHAT_MASTER_PASSPHRASE = MASTER_PASSPHRASE
    settings.CHAT_ADMIN_USERNAME = "admin"
    settings.CHAT_DEFAULT_RETENTION_HOURS = 24
    settings.CHAT_PRESENCE_EXPIRY_ENABLED = False
    settings.CHAT_PRESENCE_TTL_SECONDS = 3600
    settings.CHAT_ROOM_LEAVE_ENABLED = False
    return settings


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def store():
    """Fresh in-memory session store."""
    return InMemorySessionStore()


@pytest.fixture
def admin_config(store):
    """Stored AdminConfig with admin password 'secret1'."""
    config = AdminConfigFactory()
    store.save_admin_config(config)
    return config


# =============================================================================
# Identity Fixtures
# =============================================================================


@pytest.fixture
def alice():
    return IdentityFactory(username="alice")


@pytest.fixture
def bob():
    return IdentityFactory(username="bob")


@pytest.fixture
def admin_identity():
    return AdminIdentityFactory()


# =============================================================================
# Room Fixtures
# =============================================================================


@pytest.fixture
def public_room(store, alice):
    """Stored public room owned by alice."""
    room = RoomFactory(owner=alice, name="Lobby", password="lobby-pass")
    store.save_rooms([*store.load_rooms(), room])
    return room


@pytest.fixture
def private_room(store, alice):
    """Stored private room owned by alice."""
    room = PrivateRoomFactory(owner=alice, name="Book Club", password="hunter22")
    store.save_rooms([*store.load_rooms(), room])
    return room


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def engine(store):
    """Engine bound to the shared in-memory store."""
    return ChatEngine(store)


@pytest.fixture
def other_engine(store):
    """A second session sharing the same store."""
    return ChatEngine(store)


@pytest.fixture
def login():
    """
    Log an engine in through the full login flow.

    Usage:
        login(engine, "alice")
        login(engine, "admin", admin_password="secret1")
        login(engine, "guest", password="hunter22")
    """

    def _login(engine, username, password=MASTER_PASSPHRASE, admin_password=None):
        flow = engine.begin_login()
        result = flow.submit_password(password)
        assert result.success, result.error

        result = flow.submit_username(username)
        if flow.phase == LoginPhase.ADMIN_SETUP:
            result = flow.submit_admin_password(admin_password)
        assert result.success, result.error

        engine.login(
            result.data.identity,
            result.data.grant.level,
            result.data.grant.restricted_room_id,
        )
        return result.data.identity

    return _login


@pytest.fixture
def admin_engine(engine, login):
    """
    Engine logged in as the bootstrapped admin.

    The admin password equals the master passphrase so the admin can log in
    again through the password phase.
    """
    login(engine, "admin", admin_password=MASTER_PASSPHRASE)
    return engine
