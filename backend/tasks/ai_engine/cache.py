# tasks/ai_engine/cache.py

import hashlib
import logging
from typing import Callable, List, Optional

from django.core.cache import cache

from .conf import engine_setting
from .result import Ok, Result

logger = logging.getLogger(__name__)


class RankingCache:
    """
    Caches successful external rankings keyed by a SHA256 of the prompt.

    Identical batches (same tasks, breakdowns and weights) produce identical
    prompts, so a repeated call is answered without another LLM round trip.
    Failures are never cached, so a transient outage cannot poison the key.
    """

    def __init__(self, ttl: Optional[int] = None, version: Optional[str] = None):
        """
        Args:
            ttl: Time-to-live in seconds (default: settings.TASKTUNER['RANKING_CACHE_TTL']).
            version: Cache versioning to invalidate entries during deployments.
        """
        self.ttl = ttl if ttl is not None else engine_setting("RANKING_CACHE_TTL")
        self.version = version or engine_setting("RANKING_CACHE_VERSION")

    def get_or_rank(
        self,
        prompt: str,
        rank_func: Callable[[], Result[List[str]]],
    ) -> Result[List[str]]:
        """Return the cached ordering for ``prompt`` or run ``rank_func`` on a miss."""
        cache_key = self._generate_key(prompt)

        try:
            cached = cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Ranking cache hit: {cache_key}")
                return Ok(list(cached))
        except Exception as e:
            # Transparently handle Redis connectivity issues
            logger.error(f"Ranking cache retrieval failure: {str(e)}")

        logger.info(f"Ranking cache miss: {cache_key}. Invoking external ranker.")
        result = rank_func()

        if result.is_ok:
            try:
                cache.set(cache_key, list(result.value), timeout=self.ttl)
            except Exception as e:
                logger.error(f"Ranking cache persistence failure: {str(e)}")

        return result

    def _generate_key(self, prompt: str) -> str:
        digest = hashlib.sha256(prompt.encode("utf-8")).hexdigest()
        return f"ai_rank_{self.version}_{digest}"
