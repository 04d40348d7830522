"""Key-value stores that hold reminder state between ticks and restarts.

Every entry carries a version that increases on each write. ``compare_and_set``
only writes when the caller's version is still current, which lets concurrent
tick drivers agree on a single winner.
"""
from __future__ import annotations

import logging
from copy import deepcopy
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from recovery.core.errors import StoreUnavailableError
from recovery.db.models.reminder_kv import ReminderKV

logger = logging.getLogger(__name__)

Entry = Tuple[Dict[str, Any], int]


class KeyValueStore:
    """Base interface for reminder state persistence."""

    def get_entry(self, key: str) -> Optional[Entry]:
        """Return ``(value, version)`` or ``None``."""
        raise NotImplementedError

    def set(self, key: str, value: Dict[str, Any]) -> None:
        raise NotImplementedError

    def compare_and_set(self, key: str, value: Dict[str, Any], *, expected_version: int) -> bool:
        """Write ``value`` only if the stored version equals ``expected_version``."""
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def keys(self, prefix: str = "") -> List[str]:
        raise NotImplementedError

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self.get_entry(key)
        return entry[0] if entry else None


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store; state is lost when the process exits."""

    def __init__(self) -> None:
        self._data: Dict[str, Entry] = {}
        self._lock = Lock()

    def get_entry(self, key: str) -> Optional[Entry]:
        with self._lock:
            entry = self._data.get(key)
            return (deepcopy(entry[0]), entry[1]) if entry is not None else None

    def set(self, key: str, value: Dict[str, Any]) -> None:
        with self._lock:
            current = self._data.get(key)
            self._data[key] = (deepcopy(value), current[1] + 1 if current else 1)

    def compare_and_set(self, key: str, value: Dict[str, Any], *, expected_version: int) -> bool:
        with self._lock:
            current = self._data.get(key)
            if current is None or current[1] != expected_version:
                return False
            self._data[key] = (deepcopy(value), expected_version + 1)
            return True

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            return sorted(key for key in self._data if key.startswith(prefix))


class SqlKeyValueStore(KeyValueStore):
    """Rows in ``reminder_kv``; each write commits on its own."""

    def __init__(self, db: Session):
        self.db = db

    def get_entry(self, key: str) -> Optional[Entry]:
        try:
            row = self.db.execute(
                select(ReminderKV.value, ReminderKV.version).where(ReminderKV.key == key)
            ).one_or_none()
        except DBAPIError as exc:
            raise self._unavailable("get", exc) from exc
        return (dict(row.value), row.version) if row is not None else None

    def set(self, key: str, value: Dict[str, Any]) -> None:
        try:
            row = self.db.get(ReminderKV, key, populate_existing=True)
            if row is None:
                self.db.add(ReminderKV(key=key, value=dict(value), version=1))
            else:
                row.value = dict(value)
                row.version = row.version + 1
            self.db.commit()
        except DBAPIError as exc:
            raise self._unavailable("set", exc) from exc

    def compare_and_set(self, key: str, value: Dict[str, Any], *, expected_version: int) -> bool:
        try:
            result = self.db.execute(
                update(ReminderKV)
                .where(ReminderKV.key == key, ReminderKV.version == expected_version)
                .values(value=dict(value), version=expected_version + 1)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except DBAPIError as exc:
            raise self._unavailable("compare_and_set", exc) from exc
        return result.rowcount == 1

    def delete(self, key: str) -> None:
        try:
            row = self.db.get(ReminderKV, key)
            if row is not None:
                self.db.delete(row)
                self.db.commit()
        except DBAPIError as exc:
            raise self._unavailable("delete", exc) from exc

    def keys(self, prefix: str = "") -> List[str]:
        try:
            query = self.db.query(ReminderKV.key)
            if prefix:
                query = query.filter(ReminderKV.key.startswith(prefix))
            return [row[0] for row in query.order_by(ReminderKV.key).all()]
        except DBAPIError as exc:
            raise self._unavailable("keys", exc) from exc

    def _unavailable(self, operation: str, exc: Exception) -> StoreUnavailableError:
        self.db.rollback()
        logger.warning("Reminder store %s failed: %s", operation, exc)
        return StoreUnavailableError(f"Reminder store unavailable during {operation}")
