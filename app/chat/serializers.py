"""
Serializers for the chat core.

This module provides two families of serializers:
- Record serializers: encode dataclass records into JSON-ready dicts for the
  session store and validate persisted payloads on the way back in
- View serializers: render records for the presentation layer

Serializer Hierarchy:
    RecordSerializer: Base record serializer building a dataclass from
        validated data
    IdentityRecordSerializer: Identity <-> dict
    MessageRecordSerializer: Message <-> dict
    RoomRecordSerializer: Room <-> dict
    AdminConfigRecordSerializer: AdminConfig <-> dict

    MessageSerializer: Message view with tombstone handling
    RoomSerializer: Room view without the room password
    IdentitySerializer: Identity view

Design Decisions:
    - Read and write serializers are separate for clarity
    - Passwords and bodies keep surrounding whitespace exactly as stored
    - Tombstoned message bodies and reactions are never rendered
    - A pinned record carrying an expiry is normalized on load
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import serializers

from chat.types import AdminConfig, Identity, Message, PresenceStatus, Room

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Record Serializers
# =============================================================================


class RecordSerializer(serializers.Serializer):
    """
    Base serializer for persisted records.

    Subclasses set record_class; build() turns validated data into an
    instance of it.

    Usage:
        serializer = MessageRecordSerializer(data=payload)
        if serializer.is_valid():
            message = serializer.build()

        payload = MessageRecordSerializer(message).data
    """

    record_class: type = object

    def build(self) -> Any:
        """Instantiate record_class from validated data."""
        return self.record_class(**self.validated_data)


class IdentityRecordSerializer(RecordSerializer):
    """Persisted shape of an Identity."""

    record_class = Identity

    id = serializers.CharField()
    username = serializers.CharField(trim_whitespace=False)
    color = serializers.CharField()
    joined_at = serializers.DateTimeField()
    last_seen = serializers.DateTimeField(allow_null=True, default=None)
    is_admin = serializers.BooleanField(default=False)
    status = serializers.ChoiceField(
        choices=PresenceStatus.choices,
        default=PresenceStatus.ONLINE,
    )


class MessageRecordSerializer(RecordSerializer):
    """Persisted shape of a Message."""

    record_class = Message

    id = serializers.CharField()
    author_id = serializers.CharField()
    author_username = serializers.CharField(trim_whitespace=False)
    author_color = serializers.CharField()
    body = serializers.CharField(trim_whitespace=False, allow_blank=True)
    created_at = serializers.DateTimeField()
    context_id = serializers.CharField()
    expires_at = serializers.DateTimeField(allow_null=True, default=None)
    reply_to_id = serializers.CharField(allow_null=True, default=None)
    reactions = serializers.DictField(
        child=serializers.ListField(child=serializers.CharField()),
        default=dict,
    )
    is_deleted = serializers.BooleanField(default=False)
    is_pinned = serializers.BooleanField(default=False)
    is_edited = serializers.BooleanField(default=False)
    edited_at = serializers.DateTimeField(allow_null=True, default=None)

    def validate_reactions(self, value: dict[str, list[str]]) -> dict[str, list[str]]:
        # Reactor lists are sets; empty emoji keys are dropped
        cleaned = {}
        for emoji, reactors in value.items():
            unique = list(dict.fromkeys(reactors))
            if unique:
                cleaned[emoji] = unique
        return cleaned

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs.get("is_pinned"):
            attrs["expires_at"] = None
        return attrs


class RoomRecordSerializer(RecordSerializer):
    """Persisted shape of a Room."""

    record_class = Room

    id = serializers.CharField()
    name = serializers.CharField(trim_whitespace=False)
    password = serializers.CharField(trim_whitespace=False, allow_blank=True)
    owner_id = serializers.CharField()
    created_at = serializers.DateTimeField()
    retention_hours = serializers.FloatField(min_value=0)
    members = serializers.ListField(child=serializers.CharField(), default=list)
    is_private = serializers.BooleanField(default=False)
    description = serializers.CharField(
        trim_whitespace=False, allow_blank=True, default=""
    )
    last_activity = serializers.DateTimeField(allow_null=True, default=None)

    def validate_members(self, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))


class AdminConfigRecordSerializer(RecordSerializer):
    """Persisted shape of the AdminConfig."""

    record_class = AdminConfig

    admin_password = serializers.CharField(trim_whitespace=False)
    default_retention_hours = serializers.FloatField(min_value=0)
    allow_user_room_creation = serializers.BooleanField(default=True)
    max_rooms_per_user = serializers.IntegerField(min_value=0, default=5)
    welcome_message = serializers.CharField(
        trim_whitespace=False, allow_blank=True, default=""
    )


# =============================================================================
# View Serializers
# =============================================================================


class IdentitySerializer(serializers.Serializer):
    """Identity as shown in participant lists."""

    id = serializers.CharField(read_only=True)
    username = serializers.CharField(read_only=True)
    color = serializers.CharField(read_only=True)
    is_admin = serializers.BooleanField(read_only=True)
    status = serializers.CharField(read_only=True)
    joined_at = serializers.DateTimeField(read_only=True)
    last_seen = serializers.DateTimeField(read_only=True)


class MessageSerializer(serializers.Serializer):
    """
    Message as shown to the presentation layer.

    Soft-deleted messages keep their position and metadata so replies and
    ordering stay stable, but body and reactions are withheld.
    """

    id = serializers.CharField(read_only=True)
    author_id = serializers.CharField(read_only=True)
    author_username = serializers.CharField(read_only=True)
    author_color = serializers.CharField(read_only=True)
    body = serializers.SerializerMethodField()
    created_at = serializers.DateTimeField(read_only=True)
    context_id = serializers.CharField(read_only=True)
    expires_at = serializers.DateTimeField(read_only=True)
    reply_to_id = serializers.CharField(read_only=True)
    reactions = serializers.SerializerMethodField()
    is_deleted = serializers.BooleanField(read_only=True)
    is_pinned = serializers.BooleanField(read_only=True)
    is_edited = serializers.BooleanField(read_only=True)
    edited_at = serializers.DateTimeField(read_only=True)

    def get_body(self, obj: Message) -> str | None:
        if obj.is_deleted:
            return None
        return obj.body

    def get_reactions(self, obj: Message) -> dict[str, list[str]]:
        if obj.is_deleted:
            return {}
        return {emoji: list(reactors) for emoji, reactors in obj.reactions.items()}


class RoomSerializer(serializers.Serializer):
    """Room as shown in room lists; the password is never rendered."""

    id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    owner_id = serializers.CharField(read_only=True)
    created_at = serializers.DateTimeField(read_only=True)
    members = serializers.ListField(child=serializers.CharField(), read_only=True)
    member_count = serializers.SerializerMethodField()
    is_private = serializers.BooleanField(read_only=True)
    description = serializers.CharField(read_only=True)
    retention_hours = serializers.FloatField(read_only=True)
    last_activity = serializers.DateTimeField(read_only=True)

    def get_member_count(self, obj: Room) -> int:
        return len(obj.members)
