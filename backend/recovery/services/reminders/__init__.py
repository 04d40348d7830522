"""Per-plan daily reminder scheduling."""
from recovery.services.reminders.scheduler import (
    FirePrompt,
    NoOp,
    ReminderPhase,
    ReminderScheduler,
    ReminderState,
)

__all__ = ["FirePrompt", "NoOp", "ReminderPhase", "ReminderScheduler", "ReminderState"]
