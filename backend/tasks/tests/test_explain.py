# tasks/tests/test_explain.py
"""
Per-task explanation tests. Breakdowns are built by hand so every
threshold is visible in the test itself.
"""

from __future__ import annotations

from django.test import SimpleTestCase

from tasks.ai_engine.explain import BALANCED_REASON, DEFAULT_RECOMMENDATION, TaskExplainer
from tasks.ai_engine.schema import AdaptiveWeights, ScoreBreakdown
from tasks.ai_engine.urgency import STATUS_OVERDUE, STATUS_UNSCHEDULED


def breakdown(**fields) -> ScoreBreakdown:
    values = {"urgency": 20.0, "impact": 60.0, "complexity": 50.0, "context": 50.0}
    values.update(fields)
    return ScoreBreakdown(**values)


class TestTaskExplainer(SimpleTestCase):

    def setUp(self) -> None:
        self.explainer = TaskExplainer()

    def test_overdue_task(self) -> None:
        explanation = self.explainer.explain(breakdown(urgency=100.0, deadline_status=STATUS_OVERDUE))

        self.assertEqual(explanation.priority_reason, "Task is overdue and needs immediate attention")
        self.assertEqual(explanation.time_recommendation, "Start immediately - deadline is critical")
        self.assertTrue(explanation.is_urgent)
        self.assertTrue(explanation.is_overdue)
        self.assertFalse(explanation.requires_focus)

    def test_approaching_deadline(self) -> None:
        explanation = self.explainer.explain(breakdown(urgency=90.0))

        self.assertEqual(explanation.priority_reason, "Deadline is approaching soon")
        self.assertFalse(explanation.is_overdue)

    def test_quick_win(self) -> None:
        explanation = self.explainer.explain(breakdown(complexity=10.0))

        self.assertEqual(explanation.reasons, [
            "Quick win - low effort, high impact",
            "Easy to complete quickly",
        ])
        self.assertEqual(explanation.time_recommendation, DEFAULT_RECOMMENDATION)

    def test_hard_important_work_needs_focus(self) -> None:
        explanation = self.explainer.explain(breakdown(urgency=30.0, impact=90.0, complexity=85.0))

        self.assertEqual(explanation.priority_reason, "High importance task that impacts your goals")
        self.assertEqual(explanation.time_recommendation, "Consider breaking this into smaller chunks")
        self.assertTrue(explanation.requires_focus)

    def test_balanced_when_nothing_stands_out(self) -> None:
        explanation = self.explainer.explain(breakdown(deadline_status=STATUS_UNSCHEDULED))

        self.assertEqual(explanation.priority_reason, BALANCED_REASON)
        self.assertEqual(explanation.reasons, [])
        self.assertFalse(explanation.is_urgent)

    def test_secondary_timing_reason(self) -> None:
        # urgency carries the most weight but is not strong enough to lead
        explanation = self.explainer.explain(breakdown(urgency=60.0, time_awareness=100.0))

        self.assertEqual(explanation.priority_reason, "Optimal time to tackle this")
        self.assertTrue(explanation.is_optimized_for_time)
        self.assertEqual(explanation.time_recommendation, "Perfect time to work on this")

    def test_weights_pick_the_leading_factor(self) -> None:
        weights = AdaptiveWeights(
            urgency=0.1, impact=0.1, complexity=0.1, context=0.1, time_awareness=0.6
        )

        explanation = self.explainer.explain(breakdown(urgency=60.0, time_awareness=100.0), weights)

        self.assertEqual(explanation.reasons, [
            "Perfect timing - matches your productive hours",
            "Time-sensitive deadline",
        ])

    def test_payload_keys(self) -> None:
        payload = self.explainer.explain(breakdown(nlp_enhanced=True)).as_dict()

        self.assertEqual(set(payload), {
            "priorityReason", "timeRecommendation", "reasons", "isUrgent",
            "isOverdue", "isOptimizedForTime", "requiresFocus", "nlpEnhanced",
        })
        self.assertTrue(payload["nlpEnhanced"])
