# tasks/ai_engine/orchestrator.py

import datetime
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .adaptive import AdaptiveWeightModel
from .clock import Clock
from .explain import TaskExplainer
from .conf import engine_setting
from .external_ranker import ExternalRanker
from .fallback import FallbackRanker
from .features import TaskFeatureExtractor
from .insights import InsightGenerator
from .nlp import KeywordSignalDetector, SignalDetector, TaskSignals
from .result import Err, RankerFailure
from .risk import HIGH_OVERRUN_THRESHOLD, HIGH_STRESS_THRESHOLD, URGENT_THRESHOLD, RiskPredictor
from .rules import ShortCircuitRules
from .schema import (
    AdaptiveWeights,
    RiskFactors,
    ScoreBreakdown,
    ScoredTask,
    TaskSnapshot,
    UserPattern,
)
from .store import PatternStore
from .urgency import STATUS_TODAY, UrgencyCalculator, UrgencyResult, remaining_work_hours

logger = logging.getLogger(__name__)

RANKING_METHOD_AI = "ai_ranked"
RANKING_METHOD_FALLBACK = "fallback"
RANKING_METHOD_PERSONALIZED = "personalized"
RANKING_METHOD_SHORT_CIRCUIT = "short_circuit"

FALLBACK_NOTE = "Used fallback prioritization due to AI service unavailability"

PRIORITY_IMPACT = {"High": 90.0, "Medium": 60.0, "Low": 30.0}
DEFAULT_IMPACT = 60.0
CATEGORY_CONTEXT = {"Work": 85.0, "Academic": 80.0, "Personal": 50.0}
DEFAULT_CONTEXT = 60.0

CRITICAL_URGENCY_DELTA = 15.0
HIGH_URGENCY_DELTA = 10.0
OVERRUN_URGENCY_DELTA = 10.0
HIGH_IMPACT_DELTA = 15.0
STRESS_IMPACT_DELTA = 5.0
EASY_WIN_COMPLEXITY = 40.0
TIME_BONUS_SCALE = 5.0
DAILY_TASK_BONUS = 15.0
RISK_DISCOUNT = 0.2


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


@dataclass
class _TaskFacts:
    """Phase-one output for one task, before cross-task stress is known."""

    urgency: UrgencyResult
    signals: TaskSignals
    estimated_minutes: int
    complexity: float
    urgency_score: float
    overrun_probability: float


@dataclass
class PrioritizationResult:
    ranked: List[ScoredTask]
    insights: List[str]
    ai_enhanced: bool = False
    method: str = RANKING_METHOD_PERSONALIZED
    note: Optional[str] = None
    weights: Optional[AdaptiveWeights] = None
    breakdowns: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    def to_response(self) -> Dict[str, Any]:
        response = {
            "prioritizedTasks": [s.to_payload() for s in self.ranked],
            "insights": list(self.insights),
            "aiEnhanced": self.ai_enhanced,
            "rankingMethod": self.method,
        }
        if self.note:
            response["note"] = self.note
        return response


class PrioritizationEngine:
    """
    Scores and ranks a batch of tasks for one user.

    Pipeline:
        1. short-circuit rules (empty / single task)
        2. per-task urgency, language signals, complexity and overrun risk
        3. batch stress level (barrier: needs every task's urgency)
        4. per-task composite through the user's adaptive weights
        5. stable sort, then optional external re-ranking with fallback
        6. per-task explanations and insights over the final batch

    ``prioritize`` only reads the pattern store; learning happens through
    ``AdaptiveWeightModel.learn`` and feedback.
    """

    def __init__(
        self,
        store: PatternStore,
        clock: Optional[Clock] = None,
        signal_detector: Optional[SignalDetector] = None,
        ranker: Optional[ExternalRanker] = None,
        fallback: Optional[FallbackRanker] = None,
        feature_extractor: Optional[TaskFeatureExtractor] = None,
        urgency: Optional[UrgencyCalculator] = None,
        risk: Optional[RiskPredictor] = None,
        insights: Optional[InsightGenerator] = None,
        rules: Optional[ShortCircuitRules] = None,
        explainer: Optional[TaskExplainer] = None,
        use_external_ranking: Optional[bool] = None,
    ):
        self.store = store
        self.clock = clock or Clock()
        self.signal_detector = signal_detector or KeywordSignalDetector()
        self.features = feature_extractor or TaskFeatureExtractor()
        self.urgency = urgency or UrgencyCalculator()
        self.risk = risk or RiskPredictor()
        self.insights = insights or InsightGenerator()
        self.rules = rules or ShortCircuitRules()
        self.explainer = explainer or TaskExplainer()
        self.fallback = fallback or FallbackRanker(clock=self.clock, urgency=self.urgency)
        self.adaptive = AdaptiveWeightModel(
            store,
            feature_extractor=self.features,
            clock=self.clock,
            signal_detector=self.signal_detector,
        )

        if use_external_ranking is None:
            use_external_ranking = engine_setting("EXTERNAL_RANKING_ENABLED")
        self.use_external_ranking = bool(use_external_ranking)
        if ranker is None and self.use_external_ranking:
            ranker = ExternalRanker()
        self.ranker = ranker

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def prioritize(
        self,
        tasks: Sequence[Union[TaskSnapshot, Mapping[str, Any]]],
        user_id: Optional[str] = None,
        history: Iterable[Union[TaskSnapshot, Mapping[str, Any]]] = (),
        completed_tasks: Iterable[Union[TaskSnapshot, Mapping[str, Any]]] = (),
    ) -> PrioritizationResult:
        """
        Rank ``tasks`` for ``user_id``.

        Args:
            tasks: Task snapshots or raw API payloads.
            user_id: Owner of the adaptive weights; anonymous calls use defaults.
            history: Past tasks with estimate/actual minutes for overrun risk.
            completed_tasks: Recently completed tasks, also used as history.

        Raises:
            ValueError: If a raw payload cannot be ingested.
        """
        snapshots = [self._snapshot(t) for t in tasks]

        should_skip, shortcut = self.rules.evaluate(snapshots)
        if should_skip and shortcut is not None:
            ranked, insights = shortcut
            return PrioritizationResult(
                ranked=ranked,
                insights=insights,
                method=RANKING_METHOD_SHORT_CIRCUIT,
            )

        now = self.clock.now()
        past = [self._snapshot(t) for t in history] + [self._snapshot(t) for t in completed_tasks]
        pattern = self.adaptive.pattern_for(user_id)
        weights = pattern.weights

        facts: List[Optional[_TaskFacts]] = []
        for task in snapshots:
            try:
                facts.append(self._task_facts(task, now, past))
            except Exception as e:
                logger.exception(f"Engine: feature extraction failed for task {task.id}: {e}")
                facts.append(None)

        active = sum(1 for task in snapshots if not task.completed)
        urgent = sum(
            1
            for task, f in zip(snapshots, facts)
            if f is not None and not task.completed and f.urgency_score > URGENT_THRESHOLD
        )
        stress = self.risk.stress_level(active, urgent)

        scored: List[ScoredTask] = []
        for index, (task, task_facts) in enumerate(zip(snapshots, facts)):
            entry = ScoredTask(task=task, index=index)
            if task_facts is not None:
                try:
                    entry.breakdown = self._breakdown(task, task_facts, stress, pattern, now)
                    entry.score = entry.breakdown.personalized_score
                except Exception as e:
                    logger.exception(f"Engine: scoring failed for task {task.id}: {e}")
                    entry.breakdown = None
                    entry.score = 0.0
            scored.append(entry)

        # sorted() is stable: equal scores keep input order
        computed = sorted(scored, key=lambda s: s.score, reverse=True)

        ordered, ai_enhanced, method, note = self._final_order(computed, weights, now)
        for rank, entry in enumerate(ordered, start=1):
            entry.rank = rank
            if entry.breakdown is not None:
                entry.explanation = self.explainer.explain(entry.breakdown, weights)

        insights = self.insights.generate(ordered, now, remaining_work_hours(now), stress)

        logger.info(
            f"Prioritized {len(ordered)} task(s) for user {user_id or 'anonymous'} "
            f"via {method} (stress={stress:.2f})"
        )
        return PrioritizationResult(
            ranked=ordered,
            insights=insights,
            ai_enhanced=ai_enhanced,
            method=method,
            note=note,
            weights=weights,
            breakdowns={
                s.task.id: s.breakdown.as_dict() for s in ordered if s.breakdown is not None
            },
        )

    def health_check(self) -> Dict[str, Any]:
        return {
            "external_ranking_enabled": self.use_external_ranking,
            "ranker": self.ranker.health_check() if self.ranker is not None else None,
            "pattern_store": self.store.name,
            "signal_detector": type(self.signal_detector).__name__,
        }

    # ------------------------------------------------------------------
    # Per-task scoring
    # ------------------------------------------------------------------

    @staticmethod
    def _snapshot(task: Union[TaskSnapshot, Mapping[str, Any]]) -> TaskSnapshot:
        if isinstance(task, TaskSnapshot):
            return task
        return TaskSnapshot.from_payload(task)

    def _task_facts(
        self,
        task: TaskSnapshot,
        now: datetime.datetime,
        history: Sequence[TaskSnapshot],
    ) -> _TaskFacts:
        urgency = self.urgency.calculate(task, now)
        signals = self.signal_detector.detect(task.text)
        estimated = self.features.estimate_minutes(task)
        complexity = self.features.adjusted_complexity(task, signals, estimated)
        overrun = self.risk.overrun_probability(task, estimated, history)

        score = urgency.score
        if urgency.tier < 100:
            if signals.urgency.get("critical"):
                score += CRITICAL_URGENCY_DELTA
            elif signals.urgency.get("high"):
                score += HIGH_URGENCY_DELTA
            if overrun > HIGH_OVERRUN_THRESHOLD:
                score += OVERRUN_URGENCY_DELTA

        return _TaskFacts(
            urgency=urgency,
            signals=signals,
            estimated_minutes=estimated,
            complexity=complexity,
            urgency_score=_clamp(score),
            overrun_probability=overrun,
        )

    def _breakdown(
        self,
        task: TaskSnapshot,
        facts: _TaskFacts,
        stress: float,
        pattern: UserPattern,
        now: datetime.datetime,
    ) -> ScoreBreakdown:
        signals = facts.signals
        complexity = facts.complexity

        impact = PRIORITY_IMPACT.get(task.priority, DEFAULT_IMPACT)
        if signals.impact.get("high"):
            impact += HIGH_IMPACT_DELTA
        if stress > HIGH_STRESS_THRESHOLD and complexity < EASY_WIN_COMPLEXITY:
            impact += STRESS_IMPACT_DELTA
        impact = _clamp(impact)

        context = CATEGORY_CONTEXT.get(task.category, DEFAULT_CONTEXT)
        time_awareness = _clamp(TIME_BONUS_SCALE * facts.urgency.time_bonus)

        weights = pattern.weights
        composite = (
            facts.urgency_score * weights.urgency
            + impact * weights.impact
            + (100.0 - complexity) * weights.complexity
            + context * weights.context
            + time_awareness * weights.time_awareness
        )
        composite += self.adaptive.personalization_bonus(pattern, task, complexity, now)
        if task.is_daily:
            composite += DAILY_TASK_BONUS
        composite *= 1.0 - facts.overrun_probability * RISK_DISCOUNT

        return ScoreBreakdown(
            urgency=facts.urgency_score,
            impact=impact,
            complexity=complexity,
            context=context,
            time_awareness=time_awareness,
            capacity_pressure=facts.urgency.capacity_pressure,
            risk_factors=RiskFactors(
                overrun_probability=facts.overrun_probability,
                stress_level=stress,
            ),
            personalized_score=_clamp(composite),
            urgency_tier=facts.urgency.tier,
            deadline_status=facts.urgency.status,
            time_bonus=facts.urgency.time_bonus,
            estimated_minutes=facts.estimated_minutes,
            remaining_hours=facts.urgency.remaining_hours,
            due_today=task.due_at is not None and facts.urgency.status == STATUS_TODAY,
            nlp_enhanced=signals.any_detected,
        )

    # ------------------------------------------------------------------
    # Ranking
    # ------------------------------------------------------------------

    def _final_order(
        self,
        computed: List[ScoredTask],
        weights: AdaptiveWeights,
        now: datetime.datetime,
    ):
        if not self.use_external_ranking:
            return computed, False, RANKING_METHOD_PERSONALIZED, None

        if self.ranker is None:
            result = Err(RankerFailure("NOT_CONFIGURED", "No external ranker"))
        else:
            result = self.ranker.rank(computed, weights)

        def fallback_ids(failure: RankerFailure) -> List[str]:
            logger.warning(f"Engine: external ranking unavailable ({failure}); using fallback")
            in_input_order = sorted(computed, key=lambda s: s.index)
            ranked = self.fallback.rank([s.task for s in in_input_order], now)
            return [task.id for task, _ in ranked]

        ordered_ids = result.unwrap_or_else(fallback_ids)
        ordered = _expand_ids(computed, ordered_ids)
        if result.is_ok:
            return ordered, True, RANKING_METHOD_AI, None
        return ordered, False, RANKING_METHOD_FALLBACK, FALLBACK_NOTE


def _expand_ids(computed: List[ScoredTask], ordered_ids: Sequence[str]) -> List[ScoredTask]:
    """Map an ID ordering back to scored tasks without dropping any task."""
    by_id: Dict[str, List[ScoredTask]] = {}
    for entry in computed:
        by_id.setdefault(entry.task.id, []).append(entry)

    ordered: List[ScoredTask] = []
    for task_id in ordered_ids:
        ordered.extend(by_id.pop(task_id, []))
    for entry in computed:
        if entry.task.id in by_id:
            ordered.extend(by_id.pop(entry.task.id))
    return ordered

