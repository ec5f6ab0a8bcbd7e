# tasks/tests/test_store.py

from __future__ import annotations

import datetime
import threading

from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone

from tasks.ai_engine.store import (
    DatabasePatternStore,
    InMemoryPatternStore,
    build_pattern_store,
)
from tasks.models import UserPattern as UserPatternRecord


def bump(bucket: str):
    def mutate(pattern) -> None:
        pattern.preferred_times[bucket] = pattern.preferred_times.get(bucket, 0) + 1
    return mutate


class TestInMemoryPatternStore(SimpleTestCase):

    def test_unknown_user_is_none(self) -> None:
        self.assertIsNone(InMemoryPatternStore(max_users=5).get("u1"))

    def test_update_creates_and_stamps(self) -> None:
        store = InMemoryPatternStore(max_users=5)

        pattern = store.update("u1", bump("9-10"))

        self.assertEqual(pattern.preferred_times, {"9-10": 1})
        self.assertIsNotNone(pattern.last_updated)

    def test_get_returns_a_detached_copy(self) -> None:
        store = InMemoryPatternStore(max_users=5)
        store.update("u1", bump("9-10"))

        copy = store.get("u1")
        copy.preferred_times["9-10"] = 99

        self.assertEqual(store.get("u1").preferred_times, {"9-10": 1})

    def test_least_recently_used_user_is_evicted(self) -> None:
        store = InMemoryPatternStore(max_users=2)
        store.update("u1", bump("9-10"))
        store.update("u2", bump("9-10"))
        store.get("u1")  # u2 is now the oldest

        store.update("u3", bump("9-10"))

        self.assertEqual(len(store), 2)
        self.assertIsNone(store.get("u2"))
        self.assertIsNotNone(store.get("u1"))

    def test_evict_stale(self) -> None:
        store = InMemoryPatternStore(max_users=5)
        store.update("u1", bump("9-10"))

        self.assertEqual(store.evict_stale(timezone.now() - datetime.timedelta(days=1)), 0)
        self.assertEqual(store.evict_stale(timezone.now() + datetime.timedelta(seconds=1)), 1)
        self.assertEqual(len(store), 0)

    def test_concurrent_updates_for_one_user_are_not_lost(self) -> None:
        store = InMemoryPatternStore(max_users=5)

        def worker() -> None:
            for _ in range(25):
                store.update("u1", bump("9-10"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(store.get("u1").preferred_times["9-10"], 200)


class TestDatabasePatternStore(TestCase):

    def setUp(self) -> None:
        self.store = DatabasePatternStore()

    def test_unknown_user_is_none(self) -> None:
        self.assertIsNone(self.store.get("u1"))

    def test_update_persists_row(self) -> None:
        self.store.update("u1", bump("9-10"))
        self.store.update("u1", bump("9-10"))

        row = UserPatternRecord.objects.get(user_id="u1")
        self.assertEqual(row.preferred_times, {"9-10": 2})
        self.assertAlmostEqual(sum(row.weights.values()), 1.0)

    def test_round_trip_through_get(self) -> None:
        self.store.update("u1", bump("14-15"))

        pattern = self.store.get("u1")

        self.assertEqual(pattern.preferred_times, {"14-15": 1})
        self.assertIsNotNone(pattern.last_updated)

    def test_evict_stale(self) -> None:
        self.store.update("u1", bump("9-10"))
        self.store.update("u2", bump("9-10"))
        UserPatternRecord.objects.filter(user_id="u1").update(
            last_updated=timezone.now() - datetime.timedelta(days=120)
        )

        evicted = self.store.evict_stale(timezone.now() - datetime.timedelta(days=90))

        self.assertEqual(evicted, 1)
        self.assertEqual(
            list(UserPatternRecord.objects.values_list("user_id", flat=True)), ["u2"]
        )


class TestBuildPatternStore(SimpleTestCase):

    def test_kinds(self) -> None:
        self.assertIsInstance(build_pattern_store("memory"), InMemoryPatternStore)
        self.assertIsInstance(build_pattern_store("database"), DatabasePatternStore)

    @override_settings(TASKTUNER={"PATTERN_STORE": "memory", "PATTERN_STORE_MAX_USERS": 3})
    def test_reads_settings(self) -> None:
        store = build_pattern_store()

        self.assertIsInstance(store, InMemoryPatternStore)
        self.assertEqual(store.max_users, 3)

    def test_unknown_kind(self) -> None:
        with self.assertRaises(ValueError):
            build_pattern_store("redis")
