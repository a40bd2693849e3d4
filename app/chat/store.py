"""
Session store: durable persistence for the chat core's collections.

The chat core persists six named collections. Each is read and written as a
whole document under a fixed key; there are no cross-collection transactions.

Collections:
    messages          ordered list of Message        (STORAGE_KEYS.MESSAGES)
    users             list of present Identity       (STORAGE_KEYS.USERS)
    current identity  optional Identity              (STORAGE_KEYS.CURRENT_USER)
    rooms             ordered list of Room           (STORAGE_KEYS.CHAT_ROOMS)
    saved identities  lowercase username -> Identity (STORAGE_KEYS.USER_SESSIONS)
    admin config      optional AdminConfig           (STORAGE_KEYS.ADMIN_CONFIG)

Implementations:
    SessionStore: Protocol the services depend on
    BaseSessionStore: Serializer-backed encoding over raw read/write primitives
    DatabaseSessionStore: One StoredCollection row per collection
    InMemorySessionStore: JSON text held in a dict; no durable side effects

A malformed or corrupt collection decodes as empty (or None for the single
record collections). The problem is logged, never raised.

Usage:
    from chat.store import DatabaseSessionStore

    store = DatabaseSessionStore()
    rooms = store.load_rooms()
    rooms.append(room)
    store.save_rooms(rooms)
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from chat.constants import STORAGE_KEYS
from chat.models import StoredCollection
from chat.serializers import (
    AdminConfigRecordSerializer,
    IdentityRecordSerializer,
    MessageRecordSerializer,
    RecordSerializer,
    RoomRecordSerializer,
)

if TYPE_CHECKING:
    from typing import Any

    from chat.types import AdminConfig, Identity, Message, Room

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionStore(Protocol):
    """
    Protocol for chat session persistence.

    One load/save pair per collection. Loads return fresh objects; callers
    mutate them and save the whole collection back.

    Example:
        def count_rooms(store: SessionStore) -> int:
            return len(store.load_rooms())
    """

    def load_messages(self) -> list[Message]: ...

    def save_messages(self, messages: list[Message]) -> None: ...

    def load_users(self) -> list[Identity]: ...

    def save_users(self, users: list[Identity]) -> None: ...

    def load_current_identity(self) -> Identity | None: ...

    def save_current_identity(self, identity: Identity) -> None: ...

    def clear_current_identity(self) -> None: ...

    def load_rooms(self) -> list[Room]: ...

    def save_rooms(self, rooms: list[Room]) -> None: ...

    def load_saved_identities(self) -> dict[str, Identity]: ...

    def load_saved_identity(self, username: str) -> Identity | None: ...

    def save_saved_identity(self, username: str, identity: Identity) -> None: ...

    def load_admin_config(self) -> AdminConfig | None: ...

    def save_admin_config(self, config: AdminConfig) -> None: ...


class BaseSessionStore:
    """
    Serializer-backed SessionStore over three raw primitives.

    Subclasses implement _read, _write and _delete for JSON-compatible
    payloads. _read raises ValueError when the stored bytes are not JSON.
    """

    # -------------------------------------------------------------------------
    # Raw primitives
    # -------------------------------------------------------------------------

    def _read(self, key: str) -> Any | None:
        raise NotImplementedError

    def _write(self, key: str, payload: Any) -> None:
        raise NotImplementedError

    def _delete(self, key: str) -> None:
        raise NotImplementedError

    # -------------------------------------------------------------------------
    # Decoding helpers
    # -------------------------------------------------------------------------

    def _load_payload(self, key: str) -> Any | None:
        try:
            return self._read(key)
        except ValueError:
            logger.warning(f"Collection {key} is not valid JSON; treating as empty")
            return None

    def _decode_record(
        self,
        key: str,
        payload: Any,
        serializer_class: type[RecordSerializer],
    ) -> Any | None:
        serializer = serializer_class(data=payload)
        if not serializer.is_valid():
            logger.warning(f"Collection {key} failed validation: {serializer.errors}")
            return None
        return serializer.build()

    def _load_list(
        self,
        key: str,
        serializer_class: type[RecordSerializer],
    ) -> list:
        payload = self._load_payload(key)
        if payload is None:
            return []
        if not isinstance(payload, list):
            logger.warning(f"Collection {key} is not a list; treating as empty")
            return []

        records = []
        for item in payload:
            record = self._decode_record(key, item, serializer_class)
            if record is None:
                # One bad record invalidates the whole collection
                return []
            records.append(record)
        return records

    def _load_single(
        self,
        key: str,
        serializer_class: type[RecordSerializer],
    ) -> Any | None:
        payload = self._load_payload(key)
        if payload is None:
            return None
        return self._decode_record(key, payload, serializer_class)

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def load_messages(self) -> list[Message]:
        return self._load_list(STORAGE_KEYS.MESSAGES, MessageRecordSerializer)

    def save_messages(self, messages: list[Message]) -> None:
        self._write(
            STORAGE_KEYS.MESSAGES,
            MessageRecordSerializer(messages, many=True).data,
        )

    # -------------------------------------------------------------------------
    # Users (presence collection)
    # -------------------------------------------------------------------------

    def load_users(self) -> list[Identity]:
        return self._load_list(STORAGE_KEYS.USERS, IdentityRecordSerializer)

    def save_users(self, users: list[Identity]) -> None:
        # Keyed by id: the last entry for an id wins
        unique = list({user.id: user for user in users}.values())
        self._write(
            STORAGE_KEYS.USERS,
            IdentityRecordSerializer(unique, many=True).data,
        )

    # -------------------------------------------------------------------------
    # Current identity
    # -------------------------------------------------------------------------

    def load_current_identity(self) -> Identity | None:
        return self._load_single(STORAGE_KEYS.CURRENT_USER, IdentityRecordSerializer)

    def save_current_identity(self, identity: Identity) -> None:
        self._write(
            STORAGE_KEYS.CURRENT_USER,
            IdentityRecordSerializer(identity).data,
        )

    def clear_current_identity(self) -> None:
        self._delete(STORAGE_KEYS.CURRENT_USER)

    # -------------------------------------------------------------------------
    # Rooms
    # -------------------------------------------------------------------------

    def load_rooms(self) -> list[Room]:
        return self._load_list(STORAGE_KEYS.CHAT_ROOMS, RoomRecordSerializer)

    def save_rooms(self, rooms: list[Room]) -> None:
        self._write(
            STORAGE_KEYS.CHAT_ROOMS,
            RoomRecordSerializer(rooms, many=True).data,
        )

    # -------------------------------------------------------------------------
    # Saved identities
    # -------------------------------------------------------------------------

    def load_saved_identities(self) -> dict[str, Identity]:
        key = STORAGE_KEYS.USER_SESSIONS
        payload = self._load_payload(key)
        if payload is None:
            return {}
        if not isinstance(payload, dict):
            logger.warning(f"Collection {key} is not a mapping; treating as empty")
            return {}

        identities = {}
        for username, item in payload.items():
            identity = self._decode_record(key, item, IdentityRecordSerializer)
            if identity is None:
                return {}
            identities[username.lower()] = identity
        return identities

    def load_saved_identity(self, username: str) -> Identity | None:
        return self.load_saved_identities().get(username.lower())

    def save_saved_identity(self, username: str, identity: Identity) -> None:
        # Append/overwrite only; saved identities are never pruned
        identities = self.load_saved_identities()
        identities[username.lower()] = identity
        self._write(
            STORAGE_KEYS.USER_SESSIONS,
            {
                name: IdentityRecordSerializer(saved).data
                for name, saved in identities.items()
            },
        )

    # -------------------------------------------------------------------------
    # Admin config
    # -------------------------------------------------------------------------

    def load_admin_config(self) -> AdminConfig | None:
        return self._load_single(STORAGE_KEYS.ADMIN_CONFIG, AdminConfigRecordSerializer)

    def save_admin_config(self, config: AdminConfig) -> None:
        self._write(
            STORAGE_KEYS.ADMIN_CONFIG,
            AdminConfigRecordSerializer(config).data,
        )


class DatabaseSessionStore(BaseSessionStore):
    """
    Durable store keeping one StoredCollection row per collection.

    Usage:
        store = DatabaseSessionStore()
        engine = ChatEngine(store)
    """

    def _read(self, key: str) -> Any | None:
        row = StoredCollection.objects.filter(key=key).first()
        if row is None:
            return None
        payload = row.payload
        if isinstance(payload, str):
            # Rows written outside the store may hold raw JSON text
            return json.loads(payload)
        return payload

    def _write(self, key: str, payload: Any) -> None:
        StoredCollection.objects.update_or_create(
            key=key,
            defaults={"payload": payload},
        )
        logger.debug(f"Persisted collection {key}")

    def _delete(self, key: str) -> None:
        StoredCollection.objects.filter(key=key).delete()


class InMemorySessionStore(BaseSessionStore):
    """
    Store holding each collection as JSON text in a dict.

    Encodes through JSON like a durable store so tests exercise the same
    validation path, without touching the database.

    Attributes:
        documents: Raw JSON text per collection key
    """

    def __init__(self) -> None:
        self.documents: dict[str, str] = {}

    def _read(self, key: str) -> Any | None:
        text = self.documents.get(key)
        if text is None:
            return None
        return json.loads(text)

    def _write(self, key: str, payload: Any) -> None:
        self.documents[key] = json.dumps(payload)

    def _delete(self, key: str) -> None:
        self.documents.pop(key, None)
