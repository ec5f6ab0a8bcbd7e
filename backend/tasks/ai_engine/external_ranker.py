# tasks/ai_engine/external_ranker.py
"""
External Ranker
===============

Optional re-ranking of an already-scored batch by an OpenAI-compatible
text-completion endpoint (OpenRouter by default).

Design Principles:
------------------
1. Single attempt: the client is built with ``max_retries=0`` and a bounded
   timeout, so a call never blocks indefinitely.
2. Never raises: every failure comes back as ``Err(RankerFailure)`` and the
   engine routes it to the deterministic fallback.
3. No task is ever lost: IDs the model omits are appended in computed order.
4. Fail-safe initialization: a missing API key only marks the ranker as
   not configured.

Failure Codes:
--------------
NOT_CONFIGURED, TIMEOUT, CONNECTION_ERROR, RATE_LIMIT, AUTH_ERROR,
API_ERROR_<status>, EMPTY_RESPONSE, MALFORMED_RESPONSE, UNEXPECTED_ERROR
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AuthenticationError,
    OpenAI,
    RateLimitError,
)

from .cache import RankingCache
from .conf import engine_setting
from .result import Err, Ok, RankerFailure, Result
from .schema import AdaptiveWeights, ScoredTask

logger = logging.getLogger(__name__)


class ExternalRankerNotConfigured(Exception):
    """Describes why the ranker cannot be used (reported, never raised to callers)."""

    pass


def _field(task: ScoredTask, *keys: str) -> str:
    for key in keys:
        value = task.task.payload.get(key)
        if value not in (None, ""):
            return str(value)
    return "none"


def summarize_task(scored: ScoredTask) -> str:
    """Deterministic one-block text summary of a scored task."""
    task = scored.task
    lines = [
        f"Task ID: {task.id}",
        f"Title: {task.title}",
        f"Due: {_field(scored, 'dueDate', 'deadline')} | "
        f"Start: {_field(scored, 'startDate')} {_field(scored, 'startTime')} | "
        f"End: {_field(scored, 'endTime')}",
        f"Priority: {task.priority} | Category: {task.category}"
        + (" | Daily" if task.is_daily else ""),
        f"Description: {task.description or 'none'}",
    ]
    if scored.breakdown is not None:
        b = scored.breakdown
        lines.append(
            "Scores: "
            f"urgency={b.urgency:.1f}, impact={b.impact:.1f}, "
            f"complexity={b.complexity:.1f}, context={b.context:.1f}, "
            f"timeAwareness={b.time_awareness:.1f}, "
            f"capacityPressure={b.capacity_pressure:.1f}, "
            f"overrunProbability={b.risk_factors.overrun_probability:.2f}, "
            f"stressLevel={b.risk_factors.stress_level:.2f}, "
            f"personalized={b.personalized_score:.1f}"
        )
    return "\n".join(lines)


def build_prompt(scored: Sequence[ScoredTask], weights: AdaptiveWeights) -> str:
    weight_text = ", ".join(
        f"{name} {value * 100:.0f}%" for name, value in weights.as_dict().items()
    )
    summaries = "\n\n".join(summarize_task(s) for s in scored)
    return (
        "You are a productivity assistant. Rank the following tasks by urgency "
        "and impact, using the computed scores as guidance.\n"
        f"Scoring weights for this user: {weight_text}.\n\n"
        f"Tasks:\n{summaries}\n\n"
        "Return ONLY a comma-separated list of the task IDs in priority order, "
        "highest priority first. No numbering, no commentary."
    )


def merge_ranking(raw: str, ordered_ids: Sequence[str]) -> Result[List[str]]:
    """
    Merge the model's ID list into the computed order.

    Recognised IDs keep the model's order; unknown and repeated IDs are
    dropped; tasks the model left out follow in computed order.
    """
    if not raw or not raw.strip():
        return Err(RankerFailure("EMPTY_RESPONSE", "External ranker returned no content"))

    known = set(ordered_ids)
    ranked: List[str] = []
    for token in raw.split(","):
        candidate = token.strip().strip("\"'`[]().").strip()
        if candidate in known and candidate not in ranked:
            ranked.append(candidate)

    if not ranked:
        return Err(
            RankerFailure("MALFORMED_RESPONSE", "No known task IDs in external ranker output")
        )

    ranked.extend(task_id for task_id in ordered_ids if task_id not in ranked)
    return Ok(ranked)


class ExternalRanker:
    """
    Chat-completions client that asks for an ordered list of task IDs.

    Attributes:
        model (str): Model identifier sent to the endpoint.
        timeout (float): Per-call timeout in seconds.
        is_configured (bool): Whether an API key and client are available.
        configuration_error (str | None): Why the ranker is not configured.
    """

    DEFAULT_TEMPERATURE: float = 0.2
    DEFAULT_MAX_TOKENS: int = 200

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        cache: Optional[RankingCache] = None,
    ) -> None:
        self.model: str = model or engine_setting("EXTERNAL_RANKER_MODEL")
        self.base_url: str = base_url or engine_setting("EXTERNAL_RANKER_BASE_URL")
        self.timeout: float = float(timeout or engine_setting("EXTERNAL_RANKER_TIMEOUT"))
        self.cache = cache or RankingCache()

        self.client: Optional[OpenAI] = None
        self.is_configured: bool = False
        self.configuration_error: Optional[str] = None

        self._configure(api_key)

    def _configure(self, api_key: Optional[str]) -> None:
        resolved_key = api_key or engine_setting("EXTERNAL_RANKER_API_KEY") or ""
        if not resolved_key:
            self.configuration_error = str(
                ExternalRankerNotConfigured(
                    "No API key configured. Set OPENROUTER_API_KEY or OPENAI_API_KEY."
                )
            )
            logger.warning(f"ExternalRanker: {self.configuration_error}")
            return

        try:
            # One attempt only: retries would stretch the bounded wait.
            self.client = OpenAI(
                api_key=resolved_key,
                base_url=self.base_url,
                max_retries=0,
                timeout=self.timeout,
            )
            self.is_configured = True
            logger.info(f"ExternalRanker initialized with model={self.model}")
        except Exception as e:
            self.configuration_error = f"Failed to initialize client: {str(e)}"
            logger.error(f"ExternalRanker: {self.configuration_error}")
            self.client = None

    def complete(self, prompt: str) -> Result[str]:
        """Send ``prompt`` once and return the raw completion text."""
        if not self.is_configured or self.client is None:
            return Err(
                RankerFailure("NOT_CONFIGURED", self.configuration_error or "Ranker not available")
            )

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.DEFAULT_TEMPERATURE,
                max_tokens=self.DEFAULT_MAX_TOKENS,
                timeout=self.timeout,
            )
            content = response.choices[0].message.content or ""
            logger.debug(f"ExternalRanker: raw response: {content[:200]}")
            return Ok(content)

        except APITimeoutError as e:
            logger.warning(f"External ranker timeout: {e}")
            return Err(RankerFailure("TIMEOUT", "External ranker timed out"))

        except APIConnectionError as e:
            logger.error(f"External ranker connection error: {e}")
            return Err(RankerFailure("CONNECTION_ERROR", "Could not reach external ranker"))

        except RateLimitError as e:
            logger.warning(f"External ranker rate limit exceeded: {e}")
            return Err(RankerFailure("RATE_LIMIT", "External ranker rate limit exceeded"))

        except AuthenticationError as e:
            logger.error(f"External ranker authentication failed: {e}")
            return Err(RankerFailure("AUTH_ERROR", "Invalid API key or authentication failed"))

        except APIStatusError as e:
            logger.error(f"External ranker status error: {e.status_code} - {e}")
            return Err(
                RankerFailure(f"API_ERROR_{e.status_code}", f"API error (status {e.status_code})")
            )

        except Exception as e:
            logger.exception(f"Unexpected error in ExternalRanker: {e}")
            return Err(RankerFailure("UNEXPECTED_ERROR", f"Unexpected error: {type(e).__name__}"))

    def rank(self, scored: Sequence[ScoredTask], weights: AdaptiveWeights) -> Result[List[str]]:
        """Ask for an ordering of ``scored`` (already in computed order)."""
        if not self.is_configured:
            return Err(
                RankerFailure("NOT_CONFIGURED", self.configuration_error or "Ranker not available")
            )
        prompt = build_prompt(scored, weights)
        ordered_ids = [s.task.id for s in scored]
        return self.cache.get_or_rank(prompt, lambda: self.rank_prompt(prompt, ordered_ids))

    def rank_prompt(self, prompt: str, ordered_ids: Sequence[str]) -> Result[List[str]]:
        completion = self.complete(prompt)
        if not completion.is_ok:
            return completion
        return merge_ranking(completion.value, ordered_ids)

    def health_check(self) -> Dict[str, Any]:
        return {
            "is_configured": self.is_configured,
            "model": self.model,
            "base_url": self.base_url,
            "timeout": self.timeout,
            "configuration_error": self.configuration_error,
        }
