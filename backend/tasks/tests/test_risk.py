# tasks/tests/test_risk.py

from __future__ import annotations

from django.test import SimpleTestCase

from tasks.ai_engine.risk import RiskPredictor
from tasks.ai_engine.schema import TaskSnapshot


def past(category: str, estimated: int, actual: int) -> TaskSnapshot:
    return TaskSnapshot.from_payload({
        "id": f"h-{category}-{estimated}-{actual}",
        "title": "Done",
        "category": category,
        "estimatedMinutes": estimated,
        "actualMinutes": actual,
        "completed": True,
    })


class TestOverrunProbability(SimpleTestCase):

    def setUp(self) -> None:
        self.risk = RiskPredictor()
        self.task = TaskSnapshot.from_payload({"id": "t1", "title": "Report", "category": "Work"})

    def test_no_history_is_zero(self) -> None:
        self.assertEqual(self.risk.overrun_probability(self.task, 60, []), 0.0)

    def test_mean_overrun_of_similar_tasks(self) -> None:
        history = [past("Work", 60, 90), past("Work", 50, 75)]
        self.assertAlmostEqual(self.risk.overrun_probability(self.task, 60, history), 0.5)

    def test_other_categories_are_ignored(self) -> None:
        history = [past("Personal", 60, 120)]
        self.assertEqual(self.risk.overrun_probability(self.task, 60, history), 0.0)

    def test_estimates_thirty_minutes_apart_are_not_similar(self) -> None:
        history = [past("Work", 90, 180)]
        self.assertEqual(self.risk.overrun_probability(self.task, 60, history), 0.0)

    def test_clamped_to_one(self) -> None:
        history = [past("Work", 60, 200)]
        self.assertEqual(self.risk.overrun_probability(self.task, 60, history), 1.0)

    def test_finishing_early_is_zero_not_negative(self) -> None:
        history = [past("Work", 60, 30)]
        self.assertEqual(self.risk.overrun_probability(self.task, 60, history), 0.0)

    def test_entries_without_actuals_are_skipped(self) -> None:
        incomplete = TaskSnapshot.from_payload(
            {"id": "h1", "title": "x", "category": "Work", "estimatedMinutes": 60}
        )
        self.assertEqual(self.risk.overrun_probability(self.task, 60, [incomplete]), 0.0)


class TestStressLevel(SimpleTestCase):

    def test_linear_in_counts(self) -> None:
        self.assertAlmostEqual(RiskPredictor().stress_level(3, 1), 0.5)

    def test_capped_at_one(self) -> None:
        self.assertEqual(RiskPredictor().stress_level(10, 5), 1.0)

    def test_idle(self) -> None:
        self.assertEqual(RiskPredictor().stress_level(0, 0), 0.0)
