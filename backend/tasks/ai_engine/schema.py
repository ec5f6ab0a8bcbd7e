# tasks/ai_engine/schema.py
"""
Engine Data Model
=================

Typed snapshots the prioritization core works on. Raw request payloads
(camelCase dictionaries from the API) are resolved into ``TaskSnapshot``
exactly once, at ingestion; scoring code never re-checks raw fields.

Timezone policy: every instant is an aware datetime in settings.TIME_ZONE.
A date-only deadline means the end of that local day.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime, parse_time

PRIORITIES = ("High", "Medium", "Low")
DEFAULT_PRIORITY = "Medium"
DEFAULT_CATEGORY = "Personal"

WEIGHT_KEYS = ("urgency", "impact", "complexity", "context", "time_awareness")
DEFAULT_WEIGHTS = {
    "urgency": 0.35,
    "impact": 0.25,
    "complexity": 0.20,
    "context": 0.15,
    "time_awareness": 0.05,
}


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _localize(value: datetime.datetime) -> datetime.datetime:
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return timezone.localtime(value)


def end_of_day(day: datetime.date) -> datetime.datetime:
    return timezone.make_aware(datetime.datetime.combine(day, datetime.time.max))


def parse_instant(value: Any) -> tuple[Optional[datetime.datetime], bool]:
    """
    Parse a deadline-like value.

    Returns ``(instant, has_time)``. Date-only values resolve to the end of
    that local day with ``has_time=False``. Empty values give ``(None, False)``.

    Raises:
        ValueError: If the value is present but not a recognizable date.
    """
    if value in (None, ""):
        return None, False
    if isinstance(value, datetime.datetime):
        return _localize(value), True
    if isinstance(value, datetime.date):
        return end_of_day(value), False

    text = str(value).strip()
    # parse_datetime also accepts "YYYY-MM-DD" (as midnight), so dates go first
    day = parse_date(text)
    if day is not None:
        return end_of_day(day), False
    parsed = parse_datetime(text)
    if parsed is not None:
        return _localize(parsed), True
    raise ValueError(f"Invalid date value: {value!r}")


def parse_clock_time(value: Any) -> Optional[datetime.time]:
    """Parse ``HH:MM`` (or a full ISO datetime) into a time of day."""
    if value in (None, ""):
        return None
    if isinstance(value, datetime.datetime):
        return _localize(value).time()
    if isinstance(value, datetime.time):
        return value

    text = str(value).strip()
    parsed = parse_time(text)
    if parsed is not None:
        return parsed
    instant = parse_datetime(text)
    if instant is not None:
        return _localize(instant).time()
    raise ValueError(f"Invalid time value: {value!r}")


def parse_day(value: Any) -> Optional[datetime.date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime.datetime):
        return _localize(value).date()
    if isinstance(value, datetime.date):
        return value
    instant, _ = parse_instant(value)
    return instant.date() if instant else None


def _optional_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)


def _normalize_priority(value: Any) -> str:
    if not value:
        return DEFAULT_PRIORITY
    text = str(value).strip().capitalize()
    return text if text in PRIORITIES else DEFAULT_PRIORITY


def _first(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if payload.get(key) not in (None, ""):
            return payload[key]
    return None


# ---------------------------------------------------------------------------
# Task snapshot
# ---------------------------------------------------------------------------


@dataclass
class TaskSnapshot:
    """A read-only view of one task for a single prioritization call."""

    id: str
    title: str
    description: str = ""
    priority: str = DEFAULT_PRIORITY
    category: str = DEFAULT_CATEGORY
    due_at: Optional[datetime.datetime] = None
    due_has_time: bool = False
    start_date: Optional[datetime.date] = None
    start_time: Optional[datetime.time] = None
    end_time: Optional[datetime.time] = None
    is_daily: bool = False
    completed: bool = False
    completed_at: Optional[datetime.datetime] = None
    completed_dates: List[datetime.datetime] = field(default_factory=list)
    points: int = 0
    estimated_minutes: Optional[int] = None
    actual_minutes: Optional[int] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """Case-folded title + description, the input of keyword matching."""
        return f"{self.title} {self.description}".strip().lower()

    @property
    def completion_times(self) -> List[datetime.datetime]:
        times = list(self.completed_dates)
        if self.completed_at is not None and self.completed_at not in times:
            times.append(self.completed_at)
        return times

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TaskSnapshot":
        """
        Resolve an API task dictionary into a snapshot.

        Raises:
            ValueError: On unparsable dates, times or integer fields.
        """
        due_at, due_has_time = parse_instant(_first(payload, "dueDate", "due_date", "deadline"))
        completed_at, _ = parse_instant(_first(payload, "completedAt", "completed_at"))

        completed_dates = []
        for raw in payload.get("completedDates") or []:
            instant, _ = parse_instant(raw)
            if instant is not None:
                completed_dates.append(instant)

        return cls(
            id=str(payload.get("id", "")),
            title=str(payload.get("title") or ""),
            description=str(payload.get("description") or ""),
            priority=_normalize_priority(payload.get("priority")),
            category=str(payload.get("category") or DEFAULT_CATEGORY),
            due_at=due_at,
            due_has_time=due_has_time,
            start_date=parse_day(_first(payload, "startDate", "start_date")),
            start_time=parse_clock_time(_first(payload, "startTime", "start_time")),
            end_time=parse_clock_time(_first(payload, "endTime", "end_time")),
            is_daily=bool(_first(payload, "isDaily", "is_daily")),
            completed=bool(payload.get("completed")),
            completed_at=completed_at,
            completed_dates=completed_dates,
            points=_optional_int(payload.get("points")) or 0,
            estimated_minutes=_optional_int(
                _first(payload, "estimatedMinutes", "estimateMinutes", "estimated_minutes")
            ),
            actual_minutes=_optional_int(_first(payload, "actualMinutes", "actual_minutes")),
            payload=dict(payload),
        )


# ---------------------------------------------------------------------------
# Adaptive weights & user pattern
# ---------------------------------------------------------------------------


@dataclass
class AdaptiveWeights:
    urgency: float = DEFAULT_WEIGHTS["urgency"]
    impact: float = DEFAULT_WEIGHTS["impact"]
    complexity: float = DEFAULT_WEIGHTS["complexity"]
    context: float = DEFAULT_WEIGHTS["context"]
    time_awareness: float = DEFAULT_WEIGHTS["time_awareness"]

    def as_dict(self) -> Dict[str, float]:
        return {key: getattr(self, key) for key in WEIGHT_KEYS}

    def normalized(self) -> "AdaptiveWeights":
        """Return a copy whose five non-negative components sum to 1."""
        values = {key: max(0.0, float(v)) for key, v in self.as_dict().items()}
        total = sum(values.values())
        if total <= 0:
            return AdaptiveWeights()
        return AdaptiveWeights(**{key: v / total for key, v in values.items()})

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "AdaptiveWeights":
        if not data:
            return cls()
        return cls(**{key: float(data.get(key, DEFAULT_WEIGHTS[key])) for key in WEIGHT_KEYS})


@dataclass
class UserPattern:
    """Per-user learned state: completion patterns and the weight vector."""

    user_id: str
    preferred_times: Dict[str, int] = field(default_factory=dict)
    category_efficiency: Dict[str, Dict[str, float]] = field(default_factory=dict)
    complexity_preference: Dict[str, Dict[str, float]] = field(default_factory=dict)
    weights: AdaptiveWeights = field(default_factory=AdaptiveWeights)
    last_updated: Optional[datetime.datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "preferred_times": dict(self.preferred_times),
            "category_efficiency": {k: dict(v) for k, v in self.category_efficiency.items()},
            "complexity_preference": {k: dict(v) for k, v in self.complexity_preference.items()},
            "weights": self.weights.as_dict(),
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserPattern":
        last_updated, _ = parse_instant(data.get("last_updated"))
        return cls(
            user_id=str(data["user_id"]),
            preferred_times={k: int(v) for k, v in (data.get("preferred_times") or {}).items()},
            category_efficiency={
                k: dict(v) for k, v in (data.get("category_efficiency") or {}).items()
            },
            complexity_preference={
                k: dict(v) for k, v in (data.get("complexity_preference") or {}).items()
            },
            weights=AdaptiveWeights.from_dict(data.get("weights")),
            last_updated=last_updated,
        )

    def copy(self) -> "UserPattern":
        return UserPattern.from_dict(self.to_dict())


# ---------------------------------------------------------------------------
# Per-call scoring output
# ---------------------------------------------------------------------------


@dataclass
class RiskFactors:
    overrun_probability: float = 0.0
    stress_level: float = 0.0


@dataclass
class ScoreBreakdown:
    urgency: float = 0.0
    impact: float = 0.0
    complexity: float = 0.0
    context: float = 0.0
    time_awareness: float = 0.0
    capacity_pressure: float = 0.0
    risk_factors: RiskFactors = field(default_factory=RiskFactors)
    personalized_score: float = 0.0
    urgency_tier: float = 0.0
    deadline_status: str = "unscheduled"
    time_bonus: float = 0.0
    estimated_minutes: int = 30
    remaining_hours: float = 0.0
    due_today: bool = False
    nlp_enhanced: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "urgency": round(self.urgency, 2),
            "impact": round(self.impact, 2),
            "complexity": round(self.complexity, 2),
            "context": round(self.context, 2),
            "timeAwareness": round(self.time_awareness, 2),
            "capacityPressure": round(self.capacity_pressure, 2),
            "riskFactors": {
                "overrunProbability": round(self.risk_factors.overrun_probability, 3),
                "stressLevel": round(self.risk_factors.stress_level, 3),
            },
            "personalizedScore": round(self.personalized_score, 2),
        }


@dataclass
class TaskExplanation:
    priority_reason: str
    time_recommendation: str
    reasons: List[str] = field(default_factory=list)
    is_urgent: bool = False
    is_overdue: bool = False
    is_optimized_for_time: bool = False
    requires_focus: bool = False
    nlp_enhanced: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "priorityReason": self.priority_reason,
            "timeRecommendation": self.time_recommendation,
            "reasons": list(self.reasons),
            "isUrgent": self.is_urgent,
            "isOverdue": self.is_overdue,
            "isOptimizedForTime": self.is_optimized_for_time,
            "requiresFocus": self.requires_focus,
            "nlpEnhanced": self.nlp_enhanced,
        }


@dataclass
class ScoredTask:
    task: TaskSnapshot
    index: int
    breakdown: Optional[ScoreBreakdown] = None
    score: float = 0.0
    rank: int = 0
    explanation: Optional[TaskExplanation] = None

    def to_payload(self) -> Dict[str, Any]:
        """Original task fields plus rank, score and explanation; the breakdown stays internal."""
        data = dict(self.task.payload)
        data["aiRank"] = self.rank
        data["aiScore"] = round(self.score, 2)
        if self.explanation is not None:
            data["aiInsights"] = self.explanation.as_dict()
        return data
