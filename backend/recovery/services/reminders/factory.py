"""Reminder store factory."""
from __future__ import annotations

from functools import lru_cache

from sqlalchemy.orm import Session

from recovery.core.config import settings
from recovery.services.reminders.store import InMemoryKeyValueStore, KeyValueStore, SqlKeyValueStore


@lru_cache
def _shared_memory_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


def get_reminder_store(db: Session) -> KeyValueStore:
    provider = settings.reminder_store_provider.lower()
    if provider == "memory":
        return _shared_memory_store()
    return SqlKeyValueStore(db)
