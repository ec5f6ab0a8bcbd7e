# tasks/ai_engine/explain.py
"""
Per-task explanations.

Turns a task's ScoreBreakdown into a short primary reason, a timing
recommendation and a few flags. Every dimension is read on the 0-100 scale;
complexity is read inverted, as ease (100 - complexity), the same way it
enters the composite.
"""

from typing import List, Optional

from .schema import AdaptiveWeights, ScoreBreakdown, TaskExplanation
from .urgency import STATUS_OVERDUE

BALANCED_REASON = "Balanced priority based on multiple factors"
DEFAULT_RECOMMENDATION = "Good candidate for your next work session"

STRONG_FACTOR = 70.0
DOMINANT_FACTOR = 80.0
TIME_SENSITIVE = 50.0
HARD_WORK_EASE = 30.0


class TaskExplainer:
    """Pure: the same breakdown and weights always give the same explanation."""

    def explain(
        self,
        breakdown: ScoreBreakdown,
        weights: Optional[AdaptiveWeights] = None,
    ) -> TaskExplanation:
        weights = weights or AdaptiveWeights()
        ease = 100.0 - breakdown.complexity
        overdue = breakdown.deadline_status == STATUS_OVERDUE

        factors = {
            "urgency": breakdown.urgency,
            "impact": breakdown.impact,
            "complexity": ease,
            "context": breakdown.context,
            "time_awareness": breakdown.time_awareness,
        }
        # max() keeps the first of equal weighted values, in factor order
        top = max(factors, key=lambda name: factors[name] * getattr(weights, name))

        reasons: List[str] = []
        if top == "urgency" and breakdown.urgency > STRONG_FACTOR:
            if overdue:
                reasons.append("Task is overdue and needs immediate attention")
            else:
                reasons.append("Deadline is approaching soon")
        elif top == "impact" and breakdown.impact > STRONG_FACTOR:
            reasons.append("High importance task that impacts your goals")
        elif top == "time_awareness" and breakdown.time_awareness > DOMINANT_FACTOR:
            reasons.append("Perfect timing - matches your productive hours")
        elif top == "complexity" and ease > STRONG_FACTOR:
            reasons.append("Quick win - low effort, high impact")

        if breakdown.urgency > TIME_SENSITIVE and top != "urgency":
            reasons.append("Time-sensitive deadline")
        if breakdown.time_awareness > STRONG_FACTOR and top != "time_awareness":
            reasons.append("Optimal time to tackle this")
        if ease > DOMINANT_FACTOR:
            reasons.append("Easy to complete quickly")

        return TaskExplanation(
            priority_reason=reasons[0] if reasons else BALANCED_REASON,
            time_recommendation=self.recommendation(breakdown),
            reasons=reasons,
            is_urgent=breakdown.urgency > STRONG_FACTOR,
            is_overdue=overdue,
            is_optimized_for_time=breakdown.time_awareness > STRONG_FACTOR,
            requires_focus=ease < HARD_WORK_EASE or breakdown.impact > DOMINANT_FACTOR,
            nlp_enhanced=breakdown.nlp_enhanced,
        )

    @staticmethod
    def recommendation(breakdown: ScoreBreakdown) -> str:
        if breakdown.urgency > DOMINANT_FACTOR:
            return "Start immediately - deadline is critical"
        if breakdown.time_awareness > DOMINANT_FACTOR:
            return "Perfect time to work on this"
        if 100.0 - breakdown.complexity < HARD_WORK_EASE:
            return "Consider breaking this into smaller chunks"
        if breakdown.impact > DOMINANT_FACTOR:
            return "Schedule focused time for this important task"
        return DEFAULT_RECOMMENDATION
