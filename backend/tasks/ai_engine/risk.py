# tasks/ai_engine/risk.py

from typing import Iterable

from .schema import TaskSnapshot

SIMILAR_ESTIMATE_WINDOW = 30  # minutes

HIGH_OVERRUN_THRESHOLD = 0.7
HIGH_STRESS_THRESHOLD = 0.8
URGENT_THRESHOLD = 80.0


class RiskPredictor:
    """Overrun probability from similar past tasks; stress from current workload."""

    def overrun_probability(
        self,
        task: TaskSnapshot,
        estimated_minutes: int,
        history: Iterable[TaskSnapshot],
    ) -> float:
        """
        Mean of ``actual/estimated - 1`` over history entries in the same
        category whose estimate is within 30 minutes, clamped to [0, 1].
        """
        ratios = []
        for past in history:
            if past.category != task.category:
                continue
            if not past.estimated_minutes or past.actual_minutes is None:
                continue
            if abs(past.estimated_minutes - estimated_minutes) >= SIMILAR_ESTIMATE_WINDOW:
                continue
            ratios.append(past.actual_minutes / past.estimated_minutes)

        if not ratios:
            return 0.0
        average = sum(ratios) / len(ratios)
        return max(0.0, min(1.0, average - 1.0))

    def stress_level(self, active_count: int, urgent_count: int) -> float:
        return min(0.1 * active_count + 0.2 * urgent_count, 1.0)
