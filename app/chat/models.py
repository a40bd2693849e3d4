"""
Chat persistence model.

The chat core persists six named collections as whole documents, each
replaced on every write. One StoredCollection row holds one collection.

Models:
    StoredCollection: Durable key -> JSON document row

Design Decisions:
    - No per-record tables: the domain rewrites collections wholesale, so a
      single keyed document per collection mirrors the access pattern
    - Payload validation happens in chat.store through record serializers,
      so a corrupt row decodes to an empty collection instead of raising
"""

from __future__ import annotations

from django.db import models

from core.models import BaseModel


class StoredCollection(BaseModel):
    """
    A persisted collection document.

    Fields:
        key: Fixed collection identifier (see chat.constants.STORAGE_KEYS)
        payload: JSON document for the whole collection
    """

    key = models.CharField(
        max_length=64,
        unique=True,
        help_text="Fixed identifier of the persisted collection",
    )
    payload = models.JSONField(
        null=True,
        blank=True,
        help_text="Whole-collection JSON document",
    )

    class Meta:
        ordering = ["key"]
        verbose_name = "stored collection"
        verbose_name_plural = "stored collections"

    def __str__(self) -> str:
        return f"StoredCollection({self.key})"
