# tasks/ai_engine/urgency.py
"""
Deterministic urgency scoring on a 0-100 scale.

Urgency = deadline (or start-time) tier + time-of-day fit bonus + remaining
capacity pressure, capped at 100. Overdue tasks always score exactly 100.
"""

import datetime
import math
from dataclasses import dataclass
from typing import Optional

from .schema import TaskSnapshot

UNSCHEDULED_URGENCY = 20.0

WORKDAY_START_HOUR = 6
WORKDAY_END_HOUR = 22

# (max minutes until deadline, tier)
DEADLINE_MINUTE_TIERS = [
    (10, 98),
    (30, 96),
    (60, 94),
    (120, 92),
    (240, 90),
]

# (max minutes until start, tier)
START_MINUTE_TIERS = [
    (10, 97),
    (30, 95),
    (60, 93),
    (120, 91),
    (240, 89),
]

STATUS_OVERDUE = "overdue"
STATUS_IMMEDIATE = "immediate"
STATUS_HOURLY = "hourly"
STATUS_TODAY = "today"
STATUS_UPCOMING = "upcoming"
STATUS_UNSCHEDULED = "unscheduled"


@dataclass
class UrgencyResult:
    tier: float
    time_bonus: float
    capacity_pressure: float
    score: float
    remaining_hours: float
    status: str
    days_until_due: Optional[int] = None


def remaining_work_hours(now: datetime.datetime) -> float:
    """Hours left before the work day ends at 22:00."""
    return max(0.0, WORKDAY_END_HOUR - (now.hour + now.minute / 60.0))


def capacity_pressure(remaining_hours: float) -> float:
    if remaining_hours <= 2:
        return 25.0
    if remaining_hours <= 4:
        return 15.0
    if remaining_hours <= 6:
        return 8.0
    return 0.0


def time_of_day_bonus(start_hour: Optional[int], now: datetime.datetime) -> float:
    """Fit between the task's own start hour and the current hour."""
    if start_hour is None:
        return 0.0
    hour = now.hour
    if 6 <= start_hour <= 10:
        if hour <= 10:
            return 20.0
        if hour <= 12:
            return 10.0
        return -5.0
    if 11 <= start_hour <= 14:
        return 15.0 if 11 <= hour <= 15 else 5.0
    if 15 <= start_hour <= 18:
        return 12.0 if 13 <= hour <= 18 else 3.0
    if 19 <= start_hour <= 22:
        return 8.0 if hour >= 17 else 0.0
    return 0.0


def _minutes_until(target: datetime.datetime, now: datetime.datetime) -> int:
    return math.ceil((target - now).total_seconds() / 60.0)


def _status_for_tier(tier: float, is_today: bool) -> str:
    if tier >= 97:
        return STATUS_IMMEDIATE
    if tier >= 93:
        return STATUS_HOURLY
    if is_today:
        return STATUS_TODAY
    return STATUS_UPCOMING


class UrgencyCalculator:
    """Turns deadline / start time / now into an urgency score."""

    def deadline_tier(self, due_at: datetime.datetime, now: datetime.datetime) -> float:
        minutes = _minutes_until(due_at, now)
        if minutes <= 0:
            return 100.0
        for limit, tier in DEADLINE_MINUTE_TIERS:
            if minutes <= limit:
                return float(tier)

        days = (due_at.date() - now.date()).days
        if days == 0:
            remaining = remaining_work_hours(now)
            if remaining <= 4:
                return 86.0
            if remaining <= 8:
                return 84.0
            return 82.0
        if days == 1:
            return 85.0
        if days <= 3:
            return 70.0
        if days <= 7:
            return 50.0
        if days <= 14:
            return 30.0
        return 10.0

    def start_tier(self, start_at: datetime.datetime, now: datetime.datetime) -> float:
        minutes = _minutes_until(start_at, now)
        if minutes <= 0:
            return 100.0
        for limit, tier in START_MINUTE_TIERS:
            if minutes <= limit:
                return float(tier)

        start_hour = start_at.hour
        if 6 <= start_hour <= 10 and now.hour <= 12:
            return 87.0
        if start_hour >= 18 and now.hour >= 15:
            return 85.0
        return 75.0

    def start_instant(self, task: TaskSnapshot, now: datetime.datetime) -> Optional[datetime.datetime]:
        """Start date + time as an aware instant; a bare start time means today."""
        if task.start_time is None:
            return None
        day = task.start_date or now.date()
        return datetime.datetime.combine(day, task.start_time, tzinfo=now.tzinfo)

    def tier(self, task: TaskSnapshot, now: datetime.datetime) -> Optional[float]:
        """Raw tier without bonuses; None for unscheduled tasks."""
        if task.due_at is not None:
            return self.deadline_tier(task.due_at, now)
        start_at = self.start_instant(task, now)
        if start_at is not None:
            return self.start_tier(start_at, now)
        return None

    def calculate(self, task: TaskSnapshot, now: datetime.datetime) -> UrgencyResult:
        remaining = remaining_work_hours(now)

        if task.due_at is not None:
            tier = self.deadline_tier(task.due_at, now)
            days_until = (task.due_at.date() - now.date()).days
            if tier >= 100:
                return UrgencyResult(
                    tier=100.0,
                    time_bonus=0.0,
                    capacity_pressure=0.0,
                    score=100.0,
                    remaining_hours=remaining,
                    status=STATUS_OVERDUE,
                    days_until_due=days_until,
                )
            is_today = days_until == 0
        else:
            start_at = self.start_instant(task, now)
            if start_at is None:
                return UrgencyResult(
                    tier=UNSCHEDULED_URGENCY,
                    time_bonus=0.0,
                    capacity_pressure=0.0,
                    score=UNSCHEDULED_URGENCY,
                    remaining_hours=remaining,
                    status=STATUS_UNSCHEDULED,
                )
            tier = self.start_tier(start_at, now)
            days_until = None
            is_today = start_at.date() == now.date()

        start_hour = task.start_time.hour if task.start_time is not None else None
        bonus = time_of_day_bonus(start_hour, now)
        pressure = capacity_pressure(remaining)
        score = max(0.0, min(100.0, tier + bonus + pressure))

        return UrgencyResult(
            tier=tier,
            time_bonus=bonus,
            capacity_pressure=pressure,
            score=score,
            remaining_hours=remaining,
            status=_status_for_tier(tier, is_today),
            days_until_due=days_until,
        )
