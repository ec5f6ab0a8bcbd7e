# tasks/ai_engine/adaptive.py
"""
Adaptive Weight Model
=====================

Per-user weight vector nudged by fixed steps from completion history. No
statistical training happens here: every learning call applies at most
+/-0.01 to the time-awareness and context weights and renormalizes.

Learning step (one batch of historical / completed tasks):
    1. completion hours  -> preferred_times["H-H+1"] += 1
    2. per category      -> {completed, total, rate}
    3. complexity decile -> {completed, total, rate}
    4. time efficiency   -> nudge time_awareness within [0.02, 0.10]
    5. category rate     -> nudge context within [0.10, 0.20]
    6. renormalize the five weights to sum to 1
"""

from __future__ import annotations

import datetime
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from django.utils import timezone

from .clock import Clock
from .features import TaskFeatureExtractor
from .nlp import KeywordSignalDetector, SignalDetector
from .schema import AdaptiveWeights, TaskSnapshot, UserPattern
from .store import PatternStore

logger = logging.getLogger(__name__)

NEUTRAL_EFFICIENCY = 0.5
WEIGHT_STEP = 0.01

TIME_AWARENESS_MAX, TIME_AWARENESS_MIN = 0.10, 0.02
CONTEXT_MAX, CONTEXT_MIN = 0.20, 0.10

PREFERRED_HOUR_BONUS = 10.0
EFFICIENT_CATEGORY_BONUS = 8.0
PREFERRED_COMPLEXITY_BONUS = 5.0

COMPLETION_ACTIONS = {"completed"}
NEGATIVE_ACTIONS = {"postponed", "deleted", "disliked"}


def hour_bucket(instant: datetime.datetime) -> str:
    hour = timezone.localtime(instant).hour if timezone.is_aware(instant) else instant.hour
    return f"{hour}-{hour + 1}"


def complexity_decile(complexity: float) -> str:
    """Nearest multiple of 10, as a string key."""
    return str(int(complexity / 10.0 + 0.5) * 10)


def _bump(stats: Dict[str, Dict[str, float]], key: str, completed: bool) -> None:
    entry = stats.setdefault(key, {"completed": 0, "total": 0, "rate": 0.0})
    entry["total"] = int(entry.get("total", 0)) + 1
    if completed:
        entry["completed"] = int(entry.get("completed", 0)) + 1
    entry["rate"] = entry["completed"] / entry["total"]


class AdaptiveWeightModel:
    """Learns per-user weights and completion patterns through a PatternStore."""

    def __init__(
        self,
        store: PatternStore,
        feature_extractor: Optional[TaskFeatureExtractor] = None,
        clock: Optional[Clock] = None,
        signal_detector: Optional[SignalDetector] = None,
    ):
        self.store = store
        self.features = feature_extractor or TaskFeatureExtractor()
        self.clock = clock or Clock()
        self.signal_detector = signal_detector or KeywordSignalDetector()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def pattern_for(self, user_id: Optional[str]) -> UserPattern:
        """Snapshot of the user's state; defaults for unknown or anonymous users."""
        if user_id:
            pattern = self.store.get(user_id)
            if pattern is not None:
                return pattern
        return UserPattern(user_id=user_id or "")

    def weights_for(self, user_id: Optional[str]) -> AdaptiveWeights:
        return self.pattern_for(user_id).weights

    @staticmethod
    def time_efficiency(pattern: UserPattern) -> float:
        """Share of completions that fall in the three busiest hour buckets."""
        counts = sorted(pattern.preferred_times.values(), reverse=True)
        total = sum(counts)
        if total <= 0:
            return NEUTRAL_EFFICIENCY
        return sum(counts[:3]) / total

    @staticmethod
    def category_efficiency(pattern: UserPattern) -> float:
        rates = [float(entry.get("rate", 0.0)) for entry in pattern.category_efficiency.values()]
        if not rates:
            return NEUTRAL_EFFICIENCY
        return sum(rates) / len(rates)

    def personalization_bonus(
        self,
        pattern: UserPattern,
        task: TaskSnapshot,
        complexity: float,
        now: datetime.datetime,
    ) -> float:
        bonus = 0.0
        if pattern.preferred_times.get(hour_bucket(now), 0) > 5:
            bonus += PREFERRED_HOUR_BONUS
        category = pattern.category_efficiency.get(task.category)
        if category and float(category.get("rate", 0.0)) > 0.7:
            bonus += EFFICIENT_CATEGORY_BONUS
        decile = pattern.complexity_preference.get(complexity_decile(complexity))
        if decile and float(decile.get("rate", 0.0)) > 0.6:
            bonus += PREFERRED_COMPLEXITY_BONUS
        return bonus

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def learn(self, user_id: str, tasks: Iterable[TaskSnapshot]) -> AdaptiveWeights:
        """Run one learning step for ``user_id`` and return the new weights."""
        batch = list(tasks)

        def apply(pattern: UserPattern) -> None:
            self._apply_learning_step(pattern, batch)

        pattern = self.store.update(user_id, apply)
        logger.info(
            f"Learning step for user {user_id} over {len(batch)} task(s): "
            f"weights={pattern.weights.as_dict()}"
        )
        return pattern.weights

    def record_feedback(
        self,
        user_id: str,
        task_id: str,
        action: str,
        context: Optional[Mapping[str, Any]] = None,
        timestamp: Optional[datetime.datetime] = None,
    ) -> AdaptiveWeights:
        """Translate one feedback event into a learning batch and learn from it."""
        batch = self._feedback_batch(task_id, action, context or {}, timestamp or self.clock.now())
        return self.learn(user_id, batch)

    def _feedback_batch(
        self,
        task_id: str,
        action: str,
        context: Mapping[str, Any],
        timestamp: datetime.datetime,
    ) -> List[TaskSnapshot]:
        if action not in COMPLETION_ACTIONS | NEGATIVE_ACTIONS:
            return []

        raw_task = dict(context.get("task") or {})
        raw_task.setdefault("id", task_id)
        raw_task.setdefault("title", "")
        if context.get("category") and not raw_task.get("category"):
            raw_task["category"] = context["category"]
        task = TaskSnapshot.from_payload(raw_task)

        if action in COMPLETION_ACTIONS:
            task.completed = True
            if task.completed_at is None:
                task.completed_at = timestamp
        else:
            task.completed = False
            task.completed_at = None
            task.completed_dates = []
        return [task]

    def _apply_learning_step(self, pattern: UserPattern, tasks: List[TaskSnapshot]) -> None:
        for task in tasks:
            completion_times = task.completion_times
            # 1. preferred completion hours
            for instant in completion_times:
                bucket = hour_bucket(instant)
                pattern.preferred_times[bucket] = pattern.preferred_times.get(bucket, 0) + 1

            done = task.completed or bool(completion_times)
            # 2. category efficiency
            _bump(pattern.category_efficiency, task.category, done)
            # 3. complexity preference
            complexity = self.features.adjusted_complexity(task, self.signal_detector.detect(task.text))
            _bump(pattern.complexity_preference, complexity_decile(complexity), done)

        weights = pattern.weights

        # 4. time awareness
        time_efficiency = self.time_efficiency(pattern)
        if time_efficiency > 0.7:
            weights.time_awareness = min(TIME_AWARENESS_MAX, weights.time_awareness + WEIGHT_STEP)
        elif time_efficiency < 0.3:
            weights.time_awareness = max(TIME_AWARENESS_MIN, weights.time_awareness - WEIGHT_STEP)

        # 5. contextual fit
        category_efficiency = self.category_efficiency(pattern)
        if category_efficiency > 0.8:
            weights.context = min(CONTEXT_MAX, weights.context + WEIGHT_STEP)
        elif category_efficiency < 0.5:
            weights.context = max(CONTEXT_MIN, weights.context - WEIGHT_STEP)

        # 6. renormalize
        pattern.weights = weights.normalized()
