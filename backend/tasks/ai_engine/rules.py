# tasks/ai_engine/rules.py

import logging
from typing import List, Optional, Sequence, Tuple

from .schema import ScoredTask, TaskSnapshot

logger = logging.getLogger(__name__)

NO_TASKS_INSIGHT = "No tasks to prioritize"
SINGLE_TASK_INSIGHT = "Only one task - start with it"
SINGLE_TASK_SCORE = 100.0


class ShortCircuitRules:
    """
    Deterministic shortcuts that skip scoring entirely.

    An empty batch and a single-task batch have fixed answers, so neither
    the scoring pipeline nor the external ranker is consulted for them.
    """

    def evaluate(
        self, tasks: Sequence[TaskSnapshot]
    ) -> Tuple[bool, Optional[Tuple[List[ScoredTask], List[str]]]]:
        """
        Returns:
            Tuple: (should_skip: bool, (ranked, insights) or None)
        """
        if not tasks:
            logger.info("Short-circuit: empty task batch")
            return True, ([], [NO_TASKS_INSIGHT])

        if len(tasks) == 1:
            logger.info(f"Short-circuit: single task {tasks[0].id}")
            only = ScoredTask(task=tasks[0], index=0, score=SINGLE_TASK_SCORE, rank=1)
            return True, ([only], [SINGLE_TASK_INSIGHT])

        return False, None
