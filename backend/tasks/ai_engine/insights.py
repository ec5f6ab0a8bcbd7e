# tasks/ai_engine/insights.py

import datetime
from typing import List, Sequence

from .risk import HIGH_OVERRUN_THRESHOLD, HIGH_STRESS_THRESHOLD
from .schema import ScoredTask
from .urgency import STATUS_HOURLY, STATUS_IMMEDIATE, STATUS_OVERDUE

OPTIMIZED_TIME_BONUS = 10
COMPLEX_THRESHOLD = 70
QUICK_WIN_MINUTES = 20


def _plural(count: int, singular: str, plural: str = None) -> str:
    return singular if count == 1 else (plural or f"{singular}s")


class InsightGenerator:
    """
    Builds the ordered insight lines for a scored batch. Pure: identical
    input always yields identical output.
    """

    def generate(
        self,
        scored: Sequence[ScoredTask],
        now: datetime.datetime,
        remaining_hours: float,
        stress_level: float,
    ) -> List[str]:
        breakdowns = [s.breakdown for s in scored if s.breakdown is not None]
        insights: List[str] = []

        # 1. time summary
        insights.append(
            f"It's {now:%H:%M} with {remaining_hours:.1f} work hours left today"
        )

        # 2. deadline counts
        immediate = sum(1 for b in breakdowns if b.deadline_status == STATUS_IMMEDIATE)
        hourly = sum(1 for b in breakdowns if b.deadline_status == STATUS_HOURLY)
        overdue = sum(1 for b in breakdowns if b.deadline_status == STATUS_OVERDUE)
        due_today = sum(1 for b in breakdowns if b.due_today)
        if immediate:
            insights.append(f"{immediate} {_plural(immediate, 'task')} need immediate attention")
        if hourly:
            insights.append(f"{hourly} {_plural(hourly, 'task')} due within the hour")
        if overdue:
            insights.append(f"{overdue} overdue {_plural(overdue, 'task')}")
        if due_today:
            insights.append(f"{due_today} {_plural(due_today, 'task')} due today")

        # 3. time-of-day fit
        optimized = sum(1 for b in breakdowns if b.time_bonus >= OPTIMIZED_TIME_BONUS)
        if optimized:
            insights.append(
                f"{optimized} {_plural(optimized, 'task')} optimized for this time of day"
            )

        # 4. capacity pressure
        pressured = sum(1 for b in breakdowns if b.capacity_pressure > 0)
        if remaining_hours <= 4 and pressured:
            insights.append(
                f"Capacity pressure: {pressured} {_plural(pressured, 'task')} "
                f"competing for the last {remaining_hours:.1f} hours"
            )

        # 5. focus recommendation
        if remaining_hours <= 2:
            insights.append("Focus on short tasks you can finish before the day ends")
        elif remaining_hours <= 4:
            insights.append("Moderate pressure: tackle the most urgent items first")

        # 6. complex work
        complex_count = sum(1 for b in breakdowns if b.complexity >= COMPLEX_THRESHOLD)
        if complex_count:
            insights.append(
                f"{complex_count} complex {_plural(complex_count, 'task')} "
                f"- block out focused time"
            )

        # 7. quick wins
        quick = sum(1 for b in breakdowns if b.estimated_minutes <= QUICK_WIN_MINUTES)
        if quick:
            insights.append(f"{quick} quick {_plural(quick, 'win')} under {QUICK_WIN_MINUTES} minutes")

        # 8. language signals
        enhanced = sum(1 for b in breakdowns if b.nlp_enhanced)
        if enhanced:
            insights.append(
                f"{enhanced} {_plural(enhanced, 'task')} enhanced by AI text analysis"
            )

        # 9. overrun risk
        risky = sum(
            1 for b in breakdowns
            if b.risk_factors.overrun_probability > HIGH_OVERRUN_THRESHOLD
        )
        if risky:
            insights.append(f"{risky} {_plural(risky, 'task')} at high risk of running over")

        # 10. stress
        if stress_level > HIGH_STRESS_THRESHOLD:
            insights.append("High workload stress detected - easy wins are boosted")

        return insights
