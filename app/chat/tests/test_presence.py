"""
Tests for the presence collection.

This module tests:
- PresenceService.set_status
- PresenceService.remove
- The optional expiry sweep behind CHAT_PRESENCE_EXPIRY_ENABLED
"""

from datetime import timedelta

from django.utils import timezone
from freezegun import freeze_time

from chat.constants import ErrorCode
from chat.presence import PresenceService, sweep_stale_presence
from chat.tests.factories import IdentityFactory
from chat.types import PresenceStatus


class TestSetStatus:
    """Tests for PresenceService.set_status()."""

    def test_records_status_everywhere(self, store, alice):
        store.save_users([alice])

        result = PresenceService(store).set_status(alice, PresenceStatus.AWAY)

        assert result.success is True
        assert store.load_users()[0].status == PresenceStatus.AWAY
        assert store.load_current_identity().status == PresenceStatus.AWAY
        assert store.load_saved_identity("alice").status == PresenceStatus.AWAY

    def test_unknown_status_is_rejected(self, store, alice):
        result = PresenceService(store).set_status(alice, "invisible")

        assert result.success is False
        assert result.error_code == ErrorCode.INVALID_STATUS


class TestRemove:
    """Tests for PresenceService.remove()."""

    def test_removes_identity(self, store, alice, bob):
        store.save_users([alice, bob])

        assert PresenceService(store).remove(alice.id) is True
        assert [user.id for user in store.load_users()] == [bob.id]

    def test_missing_identity(self, store, alice):
        assert PresenceService(store).remove(alice.id) is False


class TestPresenceExpiry:
    """
    Tests for the presence expiry sweep.

    Verifies:
    - Disabled by default: stale identities stay present
    - Enabled: identities unseen for longer than the TTL are dropped
    """

    def test_stale_identities_stay_when_disabled(self, store):
        stale = IdentityFactory(last_seen=timezone.now() - timedelta(days=2))
        store.save_users([stale])

        assert PresenceService(store).present() == [stale]

    @freeze_time("2024-01-01 12:00:00")
    def test_stale_identities_are_dropped_when_enabled(self, store, settings):
        """
        With expiry on, abandoned sessions stop showing as present.

        Why it matters: Clients closed without logging out otherwise stay
        present forever.
        """
        settings.CHAT_PRESENCE_EXPIRY_ENABLED = True
        now = timezone.now()
        fresh = IdentityFactory(last_seen=now - timedelta(minutes=5))
        stale = IdentityFactory(last_seen=now - timedelta(hours=2))
        store.save_users([fresh, stale])

        assert PresenceService(store).present() == [fresh]
        assert store.load_users() == [fresh]

    def test_sweep_falls_back_to_joined_at(self):
        now = timezone.now()
        never_seen = IdentityFactory(joined_at=now - timedelta(hours=2), last_seen=None)

        assert sweep_stale_presence([never_seen], now, 3600) == ([], 1)
