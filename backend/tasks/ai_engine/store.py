# tasks/ai_engine/store.py
"""
User Pattern Stores
===================

Per-user learned state sits behind ``PatternStore`` so the engine never owns
a global map. ``update`` is the only write path and runs the caller's
read-modify-write under a per-user lock (memory) or a row lock (database):
concurrent learning calls for one user serialize, different users never
contend.
"""

from __future__ import annotations

import datetime
import logging
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Callable, Optional

from django.db import transaction
from django.utils import timezone

from .conf import engine_setting
from .schema import AdaptiveWeights, UserPattern

logger = logging.getLogger(__name__)

Mutator = Callable[[UserPattern], None]


class PatternStore(ABC):
    name = "abstract"

    @abstractmethod
    def get(self, user_id: str) -> Optional[UserPattern]:
        """Return a detached copy of the user's pattern, or None."""

    @abstractmethod
    def update(self, user_id: str, mutate: Mutator) -> UserPattern:
        """Create-if-missing, apply ``mutate`` atomically, return the stored copy."""

    @abstractmethod
    def evict_stale(self, older_than: datetime.datetime) -> int:
        """Drop patterns not updated since ``older_than``; return how many."""


class _Entry:
    __slots__ = ("pattern", "lock")

    def __init__(self, pattern: UserPattern):
        self.pattern = pattern
        self.lock = threading.Lock()


class InMemoryPatternStore(PatternStore):
    """Process-local LRU store bounded to ``max_users`` entries."""

    name = "memory"

    def __init__(self, max_users: Optional[int] = None):
        self.max_users = max_users or engine_setting("PATTERN_STORE_MAX_USERS")
        self._entries: "OrderedDict[str, _Entry]" = OrderedDict()
        self._map_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def _entry(self, user_id: str, create: bool) -> Optional[_Entry]:
        with self._map_lock:
            entry = self._entries.get(user_id)
            if entry is None:
                if not create:
                    return None
                entry = _Entry(UserPattern(user_id=user_id))
                self._entries[user_id] = entry
                while len(self._entries) > self.max_users:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.info(f"Pattern store full; evicted least recently used user {evicted}")
            self._entries.move_to_end(user_id)
            return entry

    def get(self, user_id: str) -> Optional[UserPattern]:
        entry = self._entry(user_id, create=False)
        if entry is None:
            return None
        with entry.lock:
            return entry.pattern.copy()

    def update(self, user_id: str, mutate: Mutator) -> UserPattern:
        entry = self._entry(user_id, create=True)
        with entry.lock:
            pattern = entry.pattern.copy()
            mutate(pattern)
            pattern.last_updated = timezone.now()
            entry.pattern = pattern
            return pattern.copy()

    def evict_stale(self, older_than: datetime.datetime) -> int:
        with self._map_lock:
            stale = [
                user_id
                for user_id, entry in self._entries.items()
                if entry.pattern.last_updated is None or entry.pattern.last_updated < older_than
            ]
            for user_id in stale:
                del self._entries[user_id]
        return len(stale)


class DatabasePatternStore(PatternStore):
    """``UserPattern`` rows, updated under ``SELECT ... FOR UPDATE``."""

    name = "database"

    @staticmethod
    def _to_pattern(row) -> UserPattern:
        return UserPattern(
            user_id=row.user_id,
            preferred_times={k: int(v) for k, v in (row.preferred_times or {}).items()},
            category_efficiency={k: dict(v) for k, v in (row.category_efficiency or {}).items()},
            complexity_preference={k: dict(v) for k, v in (row.complexity_preference or {}).items()},
            weights=AdaptiveWeights.from_dict(row.weights),
            last_updated=row.last_updated,
        )

    def get(self, user_id: str) -> Optional[UserPattern]:
        from tasks.models import UserPattern as UserPatternRecord

        row = UserPatternRecord.objects.filter(user_id=user_id).first()
        return self._to_pattern(row) if row else None

    def update(self, user_id: str, mutate: Mutator) -> UserPattern:
        from tasks.models import UserPattern as UserPatternRecord

        with transaction.atomic():
            row, created = UserPatternRecord.objects.select_for_update().get_or_create(
                user_id=user_id
            )
            if created:
                logger.info(f"Created pattern record for user {user_id}")
            pattern = self._to_pattern(row)
            mutate(pattern)

            row.preferred_times = pattern.preferred_times
            row.category_efficiency = pattern.category_efficiency
            row.complexity_preference = pattern.complexity_preference
            row.weights = pattern.weights.as_dict()
            row.save()

            pattern.last_updated = row.last_updated
            return pattern

    def evict_stale(self, older_than: datetime.datetime) -> int:
        from tasks.models import UserPattern as UserPatternRecord

        deleted, _ = UserPatternRecord.objects.filter(last_updated__lt=older_than).delete()
        return deleted


def build_pattern_store(kind: Optional[str] = None) -> PatternStore:
    """Construct the store named by settings.TASKTUNER['PATTERN_STORE']."""
    kind = kind or engine_setting("PATTERN_STORE")
    if kind == InMemoryPatternStore.name:
        return InMemoryPatternStore()
    if kind == DatabasePatternStore.name:
        return DatabasePatternStore()
    raise ValueError(f"Unknown pattern store: {kind!r}")
