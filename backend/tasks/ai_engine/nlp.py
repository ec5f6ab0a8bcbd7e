# tasks/ai_engine/nlp.py
"""
Keyword signal detection.

``SignalDetector`` is the strategy the engine depends on; the keyword
implementation can be swapped for a model without touching scoring.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List

logger = logging.getLogger(__name__)


@dataclass
class TaskSignals:
    """Independent per-tier flags; a text may raise several tiers at once."""

    urgency: Dict[str, bool] = field(default_factory=dict)
    impact: Dict[str, bool] = field(default_factory=dict)
    effort: Dict[str, bool] = field(default_factory=dict)
    has_dependencies: bool = False
    nlp_confidence: float = 0.0

    @property
    def any_detected(self) -> bool:
        return (
            self.has_dependencies
            or any(self.urgency.values())
            or any(self.impact.values())
            or any(self.effort.values())
        )


class SignalDetector(ABC):
    """Extracts urgency / impact / effort / dependency signals from task text."""

    @abstractmethod
    def detect(self, text: str) -> TaskSignals:
        raise NotImplementedError


class KeywordSignalDetector(SignalDetector):
    """Case-insensitive substring matching against fixed lexicons."""

    URGENCY_KEYWORDS: Dict[str, List[str]] = {
        "critical": ["urgent", "asap", "critical", "emergency", "immediately", "rush", "deadline"],
        "high": ["important", "priority", "soon", "today", "tomorrow", "this week"],
        "medium": ["should", "need to", "when possible", "convenient"],
        "low": ["eventually", "someday", "if time", "nice to have"],
    }

    IMPACT_KEYWORDS: Dict[str, List[str]] = {
        "high": ["project", "client", "meeting", "presentation", "revenue", "strategic", "milestone"],
        "medium": ["task", "update", "review", "follow up", "prepare"],
        "low": ["organize", "clean", "file", "sort", "minor"],
    }

    EFFORT_KEYWORDS: Dict[str, List[str]] = {
        "quick": ["quick", "brief", "simple", "easy", "5 min", "10 min", "call", "email"],
        "medium": ["review", "update", "prepare", "draft", "analyze"],
        "complex": ["research", "develop", "create", "design", "write", "study", "plan", "project"],
    }

    DEPENDENCY_KEYWORDS: List[str] = [
        "waiting for",
        "depends on",
        "after",
        "before",
        "requires",
        "blocked by",
    ]

    def detect(self, text: str) -> TaskSignals:
        folded = (text or "").lower()
        return TaskSignals(
            urgency=self._match_tiers(folded, self.URGENCY_KEYWORDS),
            impact=self._match_tiers(folded, self.IMPACT_KEYWORDS),
            effort=self._match_tiers(folded, self.EFFORT_KEYWORDS),
            has_dependencies=any(word in folded for word in self.DEPENDENCY_KEYWORDS),
            nlp_confidence=min(len(folded) / 100.0, 1.0),
        )

    @staticmethod
    def _match_tiers(text: str, lexicon: Dict[str, List[str]]) -> Dict[str, bool]:
        return {tier: any(word in text for word in words) for tier, words in lexicon.items()}
