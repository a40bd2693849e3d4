"""
Chat app: the SecureChat session core.

This app handles:
- Password-gated login with public, room and admin access levels
- Identity resolution, restoration and the one-time admin bootstrap
- Messages in the general context, direct messages and rooms
- Retention-based message expiry, pinning, edits, tombstones, reactions
- Password-protected rooms and locally recorded presence

There is no server: every session reads and writes the same session store,
which is a single sqlite database by default.

Modules:
    types: Enumerations and record dataclasses
    store: Session store protocol and implementations
    access: Access resolution and the login flow
    rooms: Room registry
    ledger: Message ledger and expiry sweep
    presence: Presence collection
    engine: Session state machine composing the above

Usage:
    from chat.engine import ChatEngine
    from chat.store import DatabaseSessionStore

    engine = ChatEngine(DatabaseSessionStore())
    flow = engine.begin_login()
    flow.submit_password("Password from HMray")
    result = flow.submit_username("alice")
    engine.login(result.data.identity, result.data.grant.level)

    # Send message
    engine.send_message("Hello!")
"""
