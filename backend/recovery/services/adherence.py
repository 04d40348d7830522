"""Streak, adherence and end-of-plan analytics.

Every function here is pure: it reads the plan window and the check-in history
it is handed and never touches the store. Plans and check-ins are duck-typed so
ORM rows and plain objects both work.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Protocol


class PlanWindow(Protocol):
    start_date: date
    end_date: date
    duration_days: int


class CheckInLike(Protocol):
    checkin_date: date
    followed_steps: bool


@dataclass(frozen=True)
class AdherenceSummary:
    total_days: int
    completed_days: int
    adherence: int
    streak: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_days": self.total_days,
            "completed_days": self.completed_days,
            "adherence": self.adherence,
            "streak": self.streak,
        }


@dataclass(frozen=True)
class PlanSummary:
    success_rate: int
    longest_streak: int
    total_days: int
    completed_days: int
    missed_days: int
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success_rate": self.success_rate,
            "longest_streak": self.longest_streak,
            "total_days": self.total_days,
            "completed_days": self.completed_days,
            "missed_days": self.missed_days,
            "suggestions": list(self.suggestions),
        }


LOW_SUCCESS_THRESHOLD = 50
HIGH_SUCCESS_THRESHOLD = 80
STREAK_TARGET_DAYS = 7

SUGGEST_PROFESSIONAL_SUPPORT = (
    "Try a shorter plan next time and consider reaching out to a professional or a support group."
)
SUGGEST_MORE_REMINDERS = "Consider shorter goals and more frequent reminders."
SUGGEST_MAINTENANCE = "Great consistency: extend into a maintenance phase to lock in the habit."
SUGGEST_STREAK = "Aim for a 7-day streak by planning for triggers ahead of time."
SUGGEST_REVIEW_MISSED = "Review missed days to adjust routines and supports."


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    # Half-up integer rounding; round() would send 12.5 to 12.
    return (200 * part + whole) // (2 * whole)


def _followed_days(checkins: Iterable[CheckInLike], start: date, end: date) -> set[date]:
    return {
        checkin.checkin_date
        for checkin in checkins
        if checkin.followed_steps and start <= checkin.checkin_date <= end
    }


def summarize(plan: PlanWindow, checkins: Iterable[CheckInLike], today: date) -> AdherenceSummary:
    """Progress so far: elapsed days, followed days, adherence and current streak."""
    last_day = min(today, plan.end_date)
    total_days = max(0, (last_day - plan.start_date).days + 1)
    followed = _followed_days(checkins, plan.start_date, last_day)
    completed_days = len(followed)

    # A day without a check-in breaks the streak just like a negative one.
    streak = 0
    cursor = last_day
    while cursor >= plan.start_date and cursor in followed:
        streak += 1
        cursor -= timedelta(days=1)

    return AdherenceSummary(
        total_days=total_days,
        completed_days=completed_days,
        adherence=_percent(completed_days, total_days),
        streak=streak,
    )


def longest_streak(plan: PlanWindow, checkins: Iterable[CheckInLike]) -> int:
    followed = _followed_days(checkins, plan.start_date, plan.end_date)
    longest = current = 0
    cursor = plan.start_date
    while cursor <= plan.end_date:
        if cursor in followed:
            current += 1
            longest = max(longest, current)
        else:
            current = 0
        cursor += timedelta(days=1)
    return longest


def suggestions_for(success_rate: int, longest: int, missed_days: int, duration_days: int) -> List[str]:
    suggestions: List[str] = []
    if success_rate < LOW_SUCCESS_THRESHOLD:
        suggestions.append(SUGGEST_PROFESSIONAL_SUPPORT)
    elif success_rate < HIGH_SUCCESS_THRESHOLD:
        suggestions.append(SUGGEST_MORE_REMINDERS)
    else:
        suggestions.append(SUGGEST_MAINTENANCE)
    if longest < STREAK_TARGET_DAYS and duration_days >= STREAK_TARGET_DAYS:
        suggestions.append(SUGGEST_STREAK)
    if missed_days > 0:
        suggestions.append(SUGGEST_REVIEW_MISSED)
    return suggestions


def finalize(plan: PlanWindow, checkins: Iterable[CheckInLike]) -> PlanSummary:
    """End-of-plan summary measured against the full plan length."""
    history = list(checkins)
    total_days = plan.duration_days
    completed_days = len(_followed_days(history, plan.start_date, plan.end_date))
    missed_days = max(0, total_days - completed_days)
    success_rate = _percent(completed_days, total_days)
    longest = longest_streak(plan, history)
    return PlanSummary(
        success_rate=success_rate,
        longest_streak=longest,
        total_days=total_days,
        completed_days=completed_days,
        missed_days=missed_days,
        suggestions=suggestions_for(success_rate, longest, missed_days, total_days),
    )
