# tasks/tests/test_schema.py

from __future__ import annotations

import datetime

from django.test import SimpleTestCase
from django.utils import timezone

from tasks.ai_engine.schema import TaskSnapshot, parse_instant


class TestDeadlineParsing(SimpleTestCase):
    """Date-only deadlines mean the end of that local day."""

    def test_date_only_is_end_of_local_day(self) -> None:
        task = TaskSnapshot.from_payload({"id": "t1", "title": "x", "dueDate": "2024-01-15"})

        local = timezone.localtime(task.due_at)
        self.assertFalse(task.due_has_time)
        self.assertEqual(local.date(), datetime.date(2024, 1, 15))
        self.assertEqual(local.time(), datetime.time.max)

    def test_datetime_keeps_its_time(self) -> None:
        instant, has_time = parse_instant("2024-01-15T10:30:00")

        self.assertTrue(has_time)
        self.assertEqual((instant.hour, instant.minute), (10, 30))
        self.assertTrue(timezone.is_aware(instant))

    def test_date_object_is_end_of_day(self) -> None:
        instant, has_time = parse_instant(datetime.date(2024, 1, 16))

        self.assertFalse(has_time)
        self.assertEqual(timezone.localtime(instant).time(), datetime.time.max)

    def test_empty_and_invalid(self) -> None:
        self.assertEqual(parse_instant(""), (None, False))
        with self.assertRaises(ValueError):
            parse_instant("next tuesday-ish")
