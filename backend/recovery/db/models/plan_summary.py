"""Final plan summary snapshot ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Integer, func
from sqlalchemy.dialects.postgresql import UUID

from recovery.db.base import Base
from recovery.db.types import JSONBCompat


class PlanSummaryRecord(Base):
    __tablename__ = "plan_summaries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    plan_id = Column(
        UUID(as_uuid=True),
        ForeignKey("recovery_plans.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    success_rate = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    total_days = Column(Integer, nullable=False, default=0)
    completed_days = Column(Integer, nullable=False, default=0)
    missed_days = Column(Integer, nullable=False, default=0)
    suggestions = Column(JSONBCompat, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
