#!/usr/bin/env python
"""
Script to clear the persisted chat message collection.
This is useful for testing and development purposes.

Identities, rooms and the admin config are left untouched.
"""

import os
import sys

import django
from django.db import transaction


# Add the app directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "..", "app"))

# Setup Django
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
django.setup()

from chat.constants import STORAGE_KEYS  # noqa: E402
from chat.models import StoredCollection  # noqa: E402
from chat.store import DatabaseSessionStore  # noqa: E402


def clear_chat_messages():
    """Replace the message collection with an empty one"""
    print("🔍 Checking message count...")

    store = DatabaseSessionStore()
    initial_count = len(store.load_messages())
    print(f"📊 Found {initial_count} live chat messages")

    if initial_count == 0 and not StoredCollection.objects.filter(
        key=STORAGE_KEYS.MESSAGES
    ).exists():
        print("✅ No chat messages to clear!")
        return

    confirm = input(
        f"\n⚠️  Are you sure you want to delete ALL {initial_count} chat messages? (yes/no): "
    )

    if confirm.lower() != "yes":
        print("❌ Operation cancelled.")
        return

    print("\n🗑️  Clearing chat messages...")

    with transaction.atomic():
        store.save_messages([])

    final_count = len(store.load_messages())
    print(f"\n📊 Final count: {final_count} chat messages remaining")

    if final_count == 0:
        print("🎉 All chat messages successfully cleared!")
    else:
        print(f"⚠️  Warning: {final_count} messages still remain")


def main():
    print("🧹 Chat Message Cleaner Script")
    print("=" * 40)

    try:
        clear_chat_messages()
    except KeyboardInterrupt:
        print("\n\n⚠️  Operation interrupted by user")


if __name__ == "__main__":
    main()
