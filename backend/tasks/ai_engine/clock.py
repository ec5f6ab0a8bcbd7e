# tasks/ai_engine/clock.py

import datetime

from django.utils import timezone


class Clock:
    """Supplies the current instant, localized to settings.TIME_ZONE."""

    def now(self) -> datetime.datetime:
        return timezone.localtime()


class FixedClock(Clock):
    """A clock frozen at one instant. Naive values are read as local time."""

    def __init__(self, instant: datetime.datetime):
        if timezone.is_naive(instant):
            instant = timezone.make_aware(instant)
        self._instant = timezone.localtime(instant)

    def now(self) -> datetime.datetime:
        return self._instant
