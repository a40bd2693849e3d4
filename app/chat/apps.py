"""
Chat application configuration.

This app provides the chat client core with:
- Password-based access levels and identity login
- Password-gated rooms with visibility rules
- Message lifecycle (send, edit, tombstone, pin, react, expire)
- A durable session store of whole-collection documents
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"
