# tasks/ai_engine/features.py

import re
from typing import Optional

from .nlp import TaskSignals
from .schema import TaskSnapshot

DEFAULT_ESTIMATE_MINUTES = 30

# (pattern, minutes) checked in order; first match wins.
DURATION_HINTS = [
    (re.compile(r"\b(quick|quickly|minutes?|mins?)\b"), 15),
    (re.compile(r"\b(hours?|hrs?)\b"), 60),
    (re.compile(r"\b(days?|projects?)\b"), 240),
]

# Each family counts once no matter how many of its words match.
COMPLEX_FAMILIES = [
    ("research", "analyze", "analyse", "analysis", "investigate"),
    ("design", "architect", "architecture", "plan"),
    ("develop", "implement", "build", "create"),
    ("algorithm", "system", "integration", "migration"),
    ("write", "report", "thesis", "paper", "proposal"),
    ("study", "learn", "exam"),
]

SIMPLE_FAMILIES = [
    ("call", "phone"),
    ("email", "reply", "send", "message"),
    ("buy", "order", "pick up", "shop"),
    ("check", "confirm", "remind"),
    ("pay", "submit", "book"),
]

COMPLEXITY_BASE = 50
COMPLEX_STEP, COMPLEX_CAP = 10, 30
SIMPLE_STEP, SIMPLE_CAP = 8, 25

QUICK_EFFORT_DELTA = -20.0
COMPLEX_EFFORT_DELTA = 15.0


def _matched_families(text: str, families) -> int:
    return sum(1 for family in families if any(word in text for word in family))


class TaskFeatureExtractor:
    """Derives a duration estimate and a complexity signal from task text."""

    def estimate_minutes(self, task: TaskSnapshot) -> int:
        if task.estimated_minutes is not None and task.estimated_minutes > 0:
            return task.estimated_minutes
        text = task.text
        for pattern, minutes in DURATION_HINTS:
            if pattern.search(text):
                return minutes
        return DEFAULT_ESTIMATE_MINUTES

    def complexity(self, task: TaskSnapshot, estimated_minutes: Optional[int] = None) -> float:
        """Complexity in [10, 100]: keyword families plus a duration adjustment."""
        text = task.text
        if estimated_minutes is None:
            estimated_minutes = self.estimate_minutes(task)

        score = COMPLEXITY_BASE
        score += min(_matched_families(text, COMPLEX_FAMILIES) * COMPLEX_STEP, COMPLEX_CAP)
        score -= min(_matched_families(text, SIMPLE_FAMILIES) * SIMPLE_STEP, SIMPLE_CAP)

        if estimated_minutes <= 15:
            score -= 15
        elif estimated_minutes >= 120:
            score += 20

        return float(max(10, min(100, score)))

    def adjusted_complexity(
        self,
        task: TaskSnapshot,
        signals: TaskSignals,
        estimated_minutes: Optional[int] = None,
    ) -> float:
        """
        Complexity after the effort keywords: quick work -20 (floor 10),
        complex work +15 (cap 100). Scoring and learning both bucket this value.
        """
        complexity = self.complexity(task, estimated_minutes)
        if signals.effort.get("quick"):
            complexity = max(10.0, complexity + QUICK_EFFORT_DELTA)
        if signals.effort.get("complex"):
            complexity = min(100.0, complexity + COMPLEX_EFFORT_DELTA)
        return complexity
