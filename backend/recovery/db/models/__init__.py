"""ORM models exposed for metadata discovery."""
from recovery.db.models.action_log import ActionLog
from recovery.db.models.checkin import PlanCheckIn
from recovery.db.models.plan import RecoveryPlan
from recovery.db.models.plan_summary import PlanSummaryRecord
from recovery.db.models.reminder_kv import ReminderKV
from recovery.db.models.user import User

__all__ = [
    "ActionLog",
    "PlanCheckIn",
    "PlanSummaryRecord",
    "RecoveryPlan",
    "ReminderKV",
    "User",
]
