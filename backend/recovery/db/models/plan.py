"""Recovery plan ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID

from recovery.db.base import Base

PLAN_ACTIVE = "active"
PLAN_COMPLETED = "completed"
PLAN_CANCELED = "canceled"


class RecoveryPlan(Base):
    __tablename__ = "recovery_plans"
    __table_args__ = (
        Index("ix_recovery_plans_user_id", "user_id"),
        Index("ix_recovery_plans_user_key", "user_id", "addiction_key"),
        CheckConstraint("duration_days >= 1", name="ck_recovery_plans_duration_positive"),
        CheckConstraint("end_date >= start_date", name="ck_recovery_plans_date_order"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    addiction_key = Column(String(length=50), nullable=False)
    start_date = Column(Date, nullable=False)
    duration_days = Column(Integer, nullable=False)
    end_date = Column(Date, nullable=False)
    daily_reminder_time = Column(String(length=5), nullable=False)
    status = Column(String(length=20), nullable=False, default=PLAN_ACTIVE)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
