"""Decides which subscription reminders are due on a scheduler tick."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol

from nebula.core.config import settings
from nebula.services.dates import InvalidDateError, diff_days

logger = logging.getLogger(__name__)


class DedupStore(Protocol):
    """Remembers the date each (subscription, threshold) pair last fired."""

    def get(self, key: tuple[int, int]) -> str | None: ...

    def set(self, key: tuple[int, int], fired_on: str) -> None: ...


class InMemoryDedupStore:
    """Process-local dedup store.

    Entries are never evicted and do not survive a restart, so a pair that
    fired just before a restart may fire once more afterwards.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[int, int], str] = {}

    def get(self, key: tuple[int, int]) -> str | None:
        return self._entries.get(key)

    def set(self, key: tuple[int, int], fired_on: str) -> None:
        self._entries[key] = fired_on

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True)
class DuePair:
    subscription_id: int
    threshold: int

    @property
    def key(self) -> tuple[int, int]:
        return (self.subscription_id, self.threshold)


def parse_notify_days(value: str | None) -> list[int]:
    """Parse ``"7,3,1,0"`` into ordered unique non-negative ints.

    Entries that are not integers are dropped.
    """
    days: list[int] = []
    for part in (value or "").split(","):
        try:
            day = int(part.strip())
        except ValueError:
            continue
        if day >= 0 and day not in days:
            days.append(day)
    return days


def parse_hhmm(value: str) -> tuple[int, int] | None:
    hour, sep, minute = value.strip().partition(":")
    if not sep:
        return None
    try:
        return int(hour), int(minute)
    except ValueError:
        return None


def is_within_notify_window(
    now: tuple[int, int],
    target: tuple[int, int],
    window_minutes: int,
) -> bool:
    """Hour-exact gate with a minute window.

    The window does not cross an hour boundary: a 00:58 target does not
    match 01:02.
    """
    current_hour, current_minute = now
    target_hour, target_minute = target
    return current_hour == target_hour and abs(current_minute - target_minute) <= window_minutes


class NotificationEvaluator:
    """Finds the (subscription, threshold) pairs that must fire now.

    Reads the dedup store but never writes it; the scheduler records a pair
    once its dispatch has been attempted.
    """

    def __init__(
        self,
        dedup_store: DedupStore,
        window_minutes: int = settings.NOTIFICATION_WINDOW_MINUTES,
        default_notify_time: str = settings.DEFAULT_NOTIFY_TIME,
    ):
        self.dedup_store = dedup_store
        self.window_minutes = window_minutes
        self.default_notify_time = default_notify_time

    def due_thresholds(self, subscription: Any, today: str) -> list[int]:
        """Thresholds of one subscription that match today and have not fired today."""
        notify_days = parse_notify_days(subscription.notify_days)
        if not subscription.notify_enabled or not notify_days:
            return []

        try:
            days_left = diff_days(today, str(subscription.next_due_date))
        except InvalidDateError:
            logger.warning(
                "Subscription %s has invalid next_due_date %r",
                subscription.id,
                subscription.next_due_date,
            )
            return []

        due: list[int] = []
        for threshold in notify_days:
            if threshold != days_left:
                continue
            if self.dedup_store.get((subscription.id, threshold)) != today:
                due.append(threshold)
        return due

    def evaluate(self, today: str, now: str, subscriptions: Iterable[Any]) -> list[DuePair]:
        """Evaluate all subscriptions for one tick.

        Args:
            today: ISO date in the configured timezone.
            now: ``HH:MM`` time of day in the configured timezone.
            subscriptions: Subscription rows with notifications enabled.

        Returns:
            Due pairs, in subscription order then threshold order.
        """
        current = parse_hhmm(now)
        if current is None:
            logger.error("Unparseable current time %r", now)
            return []

        pairs: list[DuePair] = []
        for subscription in subscriptions:
            target = parse_hhmm(subscription.notify_time or self.default_notify_time)
            if target is None:
                logger.warning(
                    "Subscription %s has invalid notify_time %r",
                    subscription.id,
                    subscription.notify_time,
                )
                continue
            if not is_within_notify_window(current, target, self.window_minutes):
                continue

            for threshold in self.due_thresholds(subscription, today):
                pairs.append(DuePair(subscription_id=subscription.id, threshold=threshold))
        return pairs
