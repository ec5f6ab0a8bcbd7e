# tasks/ai_engine/fallback.py

import datetime
import logging
from typing import List, Optional, Sequence, Tuple

from .clock import Clock
from .schema import TaskSnapshot
from .urgency import UrgencyCalculator

logger = logging.getLogger(__name__)

TIER_SCALE = 100
FAR_FUTURE_DAYS = 14
FAR_FUTURE_NUMERATOR = 1000

PRIORITY_POINTS = {"High": 200, "Medium": 100, "Low": 50}
CATEGORY_POINTS = {"Work": 150, "Academic": 120, "Personal": 80}
DEFAULT_CATEGORY_POINTS = 100
DAILY_TASK_POINTS = 30


class FallbackRanker:
    """
    Deterministic integer scorer used whenever external ranking is
    unavailable. Independent of the adaptive weights and the pattern store.
    """

    def __init__(self, clock: Optional[Clock] = None, urgency: Optional[UrgencyCalculator] = None):
        self.clock = clock or Clock()
        self.urgency = urgency or UrgencyCalculator()

    def time_points(self, task: TaskSnapshot, now: datetime.datetime) -> int:
        if task.due_at is not None:
            days = (task.due_at.date() - now.date()).days
            if days > FAR_FUTURE_DAYS:
                return int(FAR_FUTURE_NUMERATOR / days)
        tier = self.urgency.tier(task, now)
        if tier is None:
            return 0
        return int(tier * TIER_SCALE)

    def score(self, task: TaskSnapshot, now: datetime.datetime) -> int:
        points = self.time_points(task, now)
        points += PRIORITY_POINTS.get(task.priority, 0)
        points += CATEGORY_POINTS.get(task.category, DEFAULT_CATEGORY_POINTS)
        if task.is_daily:
            points += DAILY_TASK_POINTS
        return points

    def rank(
        self,
        tasks: Sequence[TaskSnapshot],
        now: Optional[datetime.datetime] = None,
    ) -> List[Tuple[TaskSnapshot, int]]:
        """Tasks with their fallback score, highest first; ties keep input order."""
        now = now or self.clock.now()
        scored = [(task, self.score(task, now)) for task in tasks]
        ranked = sorted(scored, key=lambda pair: pair[1], reverse=True)
        logger.debug(f"Fallback ranking: {[(t.id, s) for t, s in ranked]}")
        return ranked
