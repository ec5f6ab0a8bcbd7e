# tasks/ai_engine/__init__.py
"""
AI Engine Package
=================

The prioritization core of TaskTuner: plain Python scoring components that
turn a batch of task snapshots into a ranked list with insights.

Modules:
--------
- orchestrator: PrioritizationEngine, the pipeline entry point
- urgency: Deterministic deadline / start-time urgency
- features: Duration estimate and complexity from task text
- nlp: Pluggable language-signal detection
- risk: Overrun probability and workload stress
- adaptive: Per-user adaptive weights and completion patterns
- store: Pattern store interface (memory LRU / database)
- external_ranker: Optional LLM re-ranking via an OpenAI-compatible API
- fallback: Deterministic ranking used whenever the LLM is unavailable
- insights: Ordered human-readable insight lines
- explain: Per-task reason, recommendation and flags (aiInsights)
- rules: Short-circuits for empty and single-task batches
- cache: Django-cache layer for successful external rankings
- celery_tasks: Background learning and pattern eviction

Ranking Methods:
----------------
- "short_circuit": Empty or single-task batch, no scoring
- "personalized": Adaptive-weight composite order (external ranking disabled)
- "ai_ranked": Composite order re-ranked by the external ranker
- "fallback": Deterministic FallbackRanker order (external ranker failed)

Usage:
------
    from django.apps import apps
    from tasks.ai_engine import PrioritizationEngine

    engine = PrioritizationEngine(store=apps.get_app_config("tasks").pattern_store)
    result = engine.prioritize(tasks=[...], user_id="u1")
    payload = result.to_response()
"""

from .adaptive import AdaptiveWeightModel
from .clock import Clock, FixedClock
from .explain import TaskExplainer
from .external_ranker import ExternalRanker
from .fallback import FallbackRanker
from .orchestrator import (
    RANKING_METHOD_AI,
    RANKING_METHOD_FALLBACK,
    RANKING_METHOD_PERSONALIZED,
    RANKING_METHOD_SHORT_CIRCUIT,
    PrioritizationEngine,
    PrioritizationResult,
)
from .schema import AdaptiveWeights, TaskSnapshot, UserPattern
from .store import DatabasePatternStore, InMemoryPatternStore, PatternStore, build_pattern_store
from .urgency import UrgencyCalculator

__all__ = [
    # Core classes
    "PrioritizationEngine",
    "PrioritizationResult",
    "AdaptiveWeightModel",
    "ExternalRanker",
    "FallbackRanker",
    "TaskExplainer",
    "Clock",
    "FixedClock",
    # Data
    "AdaptiveWeights",
    "TaskSnapshot",
    "UserPattern",
    # Stores
    "PatternStore",
    "InMemoryPatternStore",
    "DatabasePatternStore",
    "build_pattern_store",
    # Scoring
    "UrgencyCalculator",
    # Constants
    "RANKING_METHOD_AI",
    "RANKING_METHOD_FALLBACK",
    "RANKING_METHOD_PERSONALIZED",
    "RANKING_METHOD_SHORT_CIRCUIT",
]
