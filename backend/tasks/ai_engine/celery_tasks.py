# tasks/ai_engine/celery_tasks.py

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from celery import shared_task
from django.apps import apps
from django.utils import timezone

from .adaptive import AdaptiveWeightModel
from .conf import engine_setting
from .schema import TaskSnapshot

logger = logging.getLogger(__name__)


def _pattern_store():
    return apps.get_app_config("tasks").pattern_store


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=600,  # Max backoff of 10 minutes
    max_retries=3,
    time_limit=30,          # Hard limit for the task process
    soft_time_limit=25      # Soft limit to allow cleanup
)
def run_learning_step(
    self,
    user_id: str,
    task_payloads: List[Dict[str, Any]]
) -> Optional[Dict[str, float]]:
    """
    Worker: run one adaptive learning step for ``user_id`` over the given
    completed-task payloads. Returns the new weight vector.
    """
    logger.info(f"Learning step started for user {user_id} ({len(task_payloads)} task(s))")
    try:
        tasks = []
        for payload in task_payloads:
            try:
                tasks.append(TaskSnapshot.from_payload(payload))
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable task payload for user {user_id}: {e}")

        if not tasks:
            logger.warning(f"No usable tasks for user {user_id}. Exiting worker.")
            return None

        weights = AdaptiveWeightModel(_pattern_store()).learn(user_id, tasks)
        logger.info(f"Learning step persisted for user {user_id}")
        return weights.as_dict()

    except Exception as exc:
        logger.exception(f"Learning step failed for user {user_id}: {exc}")
        # Re-raise for Celery retry policy
        raise


@shared_task
def evict_stale_user_patterns() -> int:
    """Periodic: drop user patterns idle for longer than PATTERN_TTL_DAYS."""
    cutoff = timezone.now() - timedelta(days=engine_setting("PATTERN_TTL_DAYS"))
    evicted = _pattern_store().evict_stale(cutoff)
    logger.info(f"Evicted {evicted} stale user pattern(s) older than {cutoff.isoformat()}")
    return evicted
