"""
Tests for chat app.

This package contains test modules for:
- test_store.py: Session store encoding, corruption handling, database rows
- test_serializers.py: Record and view serializers
- test_access.py: Access resolution, identity resolution, login flow
- test_rooms.py: Room registry
- test_ledger.py: Message ledger and retention sweep
- test_presence.py: Presence collection
- test_engine.py: Session state machine
- test_integration.py: Multi-session journeys over one store

Usage:
    pytest chat/tests/
    pytest chat/tests/test_ledger.py
"""
