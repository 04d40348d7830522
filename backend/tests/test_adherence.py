from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from recovery.services.adherence import (
    SUGGEST_MAINTENANCE,
    SUGGEST_MORE_REMINDERS,
    SUGGEST_PROFESSIONAL_SUPPORT,
    SUGGEST_REVIEW_MISSED,
    SUGGEST_STREAK,
    finalize,
    longest_streak,
    summarize,
)

D = date(2026, 3, 2)


@dataclass
class _Plan:
    start_date: date
    duration_days: int

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=self.duration_days - 1)


@dataclass
class _CheckIn:
    checkin_date: date
    followed_steps: bool


def _checkins(*pairs):
    return [_CheckIn(D + timedelta(days=offset), followed) for offset, followed in pairs]


def test_missing_day_breaks_streak_in_five_day_scenario() -> None:
    plan = _Plan(D, 5)
    history = _checkins((0, True), (1, True), (2, True))

    summary = summarize(plan, history, D + timedelta(days=4))

    assert summary.total_days == 5
    assert summary.completed_days == 3
    assert summary.adherence == 60
    assert summary.streak == 0


def test_streak_counts_trailing_followed_days() -> None:
    plan = _Plan(D, 10)
    history = _checkins((0, True), (1, False), (2, True), (3, True), (4, True))

    summary = summarize(plan, history, D + timedelta(days=4))

    assert summary.streak == 3
    assert summary.total_days == 5
    assert summary.completed_days == 4
    assert summary.adherence == 80


def test_streak_is_zero_when_latest_day_not_followed() -> None:
    plan = _Plan(D, 10)
    history = _checkins((0, True), (1, True), (2, False))
    assert summarize(plan, history, D + timedelta(days=2)).streak == 0


def test_streak_is_zero_before_todays_checkin() -> None:
    plan = _Plan(D, 10)
    history = _checkins((0, True), (1, True))
    assert summarize(plan, history, D + timedelta(days=2)).streak == 0


def test_total_days_capped_at_plan_length() -> None:
    plan = _Plan(D, 3)
    history = _checkins((0, True), (1, True), (2, True))

    summary = summarize(plan, history, D + timedelta(days=20))

    assert summary.total_days == 3
    assert summary.adherence == 100
    assert summary.streak == 3


def test_summary_before_start_is_empty() -> None:
    summary = summarize(_Plan(D, 3), [], D - timedelta(days=1))
    assert summary.total_days == 0
    assert summary.adherence == 0
    assert summary.streak == 0


def test_adherence_rounds_half_up() -> None:
    plan = _Plan(D, 8)
    history = _checkins((0, True))
    # 1/8 = 12.5%
    assert summarize(plan, history, D + timedelta(days=7)).adherence == 13


def test_summarize_is_deterministic() -> None:
    plan = _Plan(D, 7)
    history = _checkins((0, True), (1, False), (3, True), (4, True))
    today = D + timedelta(days=4)
    assert summarize(plan, history, today) == summarize(plan, list(reversed(history)), today)


def test_longest_streak_scans_whole_plan() -> None:
    plan = _Plan(D, 10)
    history = _checkins((0, True), (1, True), (2, True), (3, True), (5, True), (6, True), (8, False), (9, True))
    assert longest_streak(plan, history) == 4


def test_finalize_low_success_suggests_support() -> None:
    plan = _Plan(D, 10)
    summary = finalize(plan, _checkins((0, True), (1, True), (4, False)))

    assert summary.total_days == 10
    assert summary.completed_days == 2
    assert summary.missed_days == 8
    assert summary.success_rate == 20
    assert summary.longest_streak == 2
    assert summary.suggestions == [SUGGEST_PROFESSIONAL_SUPPORT, SUGGEST_STREAK, SUGGEST_REVIEW_MISSED]


def test_finalize_mid_success_suggests_more_reminders() -> None:
    plan = _Plan(D, 5)
    summary = finalize(plan, _checkins((0, True), (1, True), (2, True)))

    assert summary.success_rate == 60
    assert summary.suggestions == [SUGGEST_MORE_REMINDERS, SUGGEST_REVIEW_MISSED]


def test_finalize_full_success_suggests_maintenance() -> None:
    plan = _Plan(D, 7)
    summary = finalize(plan, _checkins(*[(offset, True) for offset in range(7)]))

    assert summary.success_rate == 100
    assert summary.longest_streak == 7
    assert summary.missed_days == 0
    assert summary.suggestions == [SUGGEST_MAINTENANCE]
    assert summary.to_dict()["suggestions"] == [SUGGEST_MAINTENANCE]
