"""Daily plan check-in ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from recovery.db.base import Base


class PlanCheckIn(Base):
    __tablename__ = "plan_checkins"
    __table_args__ = (
        UniqueConstraint("plan_id", "checkin_date", name="uq_plan_checkins_plan_day"),
        Index("ix_plan_checkins_plan_id", "plan_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    plan_id = Column(UUID(as_uuid=True), ForeignKey("recovery_plans.id", ondelete="CASCADE"), nullable=False)
    checkin_date = Column(Date, nullable=False)
    followed_steps = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
