"""Key-value rows backing persisted reminder state."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, func, text

from recovery.db.base import Base
from recovery.db.types import JSONBCompat


class ReminderKV(Base):
    __tablename__ = "reminder_kv"

    key = Column(String(length=100), primary_key=True)
    value = Column(JSONBCompat, nullable=False)
    # Bumped on every write; conditional writes compare against it.
    version = Column(Integer, nullable=False, default=1, server_default=text("1"))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
