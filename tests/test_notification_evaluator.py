"""Tests for the reminder evaluator."""

from types import SimpleNamespace

import pytest

from nebula.services.notification_evaluator import (
    DuePair,
    InMemoryDedupStore,
    NotificationEvaluator,
    is_within_notify_window,
    parse_hhmm,
    parse_notify_days,
)


def _sub(**overrides):
    values = {
        "id": 1,
        "notify_enabled": True,
        "notify_days": "7,3,1,0",
        "notify_time": "09:00",
        "next_due_date": "2024-06-17",
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def store():
    return InMemoryDedupStore()


@pytest.fixture
def evaluator(store):
    return NotificationEvaluator(store, window_minutes=5, default_notify_time="09:00")


class TestParsing:
    def test_parse_notify_days(self):
        assert parse_notify_days("7, 3,1,0") == [7, 3, 1, 0]

    def test_parse_notify_days_drops_bad_entries(self):
        assert parse_notify_days("7,x,,-1,3,7") == [7, 3]

    def test_parse_notify_days_empty(self):
        assert parse_notify_days("") == []
        assert parse_notify_days(None) == []

    def test_parse_hhmm(self):
        assert parse_hhmm("09:05") == (9, 5)
        assert parse_hhmm("0905") is None
        assert parse_hhmm("ab:cd") is None


class TestNotifyWindow:
    @pytest.mark.parametrize(
        ("now", "expected"),
        [((9, 0), True), ((9, 5), True), ((9, 6), False), ((8, 58), False), ((10, 0), False)],
    )
    def test_window_around_target(self, now, expected):
        assert is_within_notify_window(now, (9, 0), 5) is expected

    def test_window_does_not_cross_hour(self):
        assert is_within_notify_window((1, 2), (0, 58), 5) is False
        assert is_within_notify_window((0, 55), (0, 58), 5) is True


class TestEvaluate:
    def test_fires_matching_threshold(self, evaluator):
        pairs = evaluator.evaluate("2024-06-10", "09:02", [_sub()])
        assert pairs == [DuePair(subscription_id=1, threshold=7)]
        assert pairs[0].key == (1, 7)

    def test_outside_window(self, evaluator):
        assert evaluator.evaluate("2024-06-10", "09:30", [_sub()]) == []

    def test_days_left_not_in_thresholds(self, evaluator):
        assert evaluator.evaluate("2024-06-11", "09:02", [_sub()]) == []

    def test_due_today_uses_zero_threshold(self, evaluator):
        pairs = evaluator.evaluate("2024-06-17", "09:00", [_sub()])
        assert pairs == [DuePair(1, 0)]

    def test_overdue_never_fires(self, evaluator):
        assert evaluator.evaluate("2024-06-18", "09:00", [_sub()]) == []

    def test_idempotent_once_recorded(self, evaluator, store):
        subs = [_sub()]
        first = evaluator.evaluate("2024-06-10", "09:02", subs)
        for pair in first:
            store.set(pair.key, "2024-06-10")

        assert evaluator.evaluate("2024-06-10", "09:02", subs) == []

    def test_stale_dedup_entry_does_not_block(self, evaluator, store):
        store.set((1, 7), "2024-06-09")
        assert evaluator.evaluate("2024-06-10", "09:02", [_sub()]) == [DuePair(1, 7)]

    def test_does_not_write_dedup_store(self, evaluator, store):
        evaluator.evaluate("2024-06-10", "09:02", [_sub()])
        assert len(store) == 0

    def test_skips_disabled_and_empty_days(self, evaluator):
        subs = [_sub(id=1, notify_enabled=False), _sub(id=2, notify_days=" , ")]
        assert evaluator.evaluate("2024-06-10", "09:02", subs) == []

    def test_empty_notify_time_uses_default(self, evaluator):
        assert evaluator.evaluate("2024-06-10", "09:01", [_sub(notify_time="")]) == [
            DuePair(1, 7)
        ]

    def test_invalid_rows_are_skipped(self, evaluator):
        subs = [
            _sub(id=1, notify_time="nine"),
            _sub(id=2, next_due_date="2024-02-30"),
            _sub(id=3),
        ]
        assert evaluator.evaluate("2024-06-10", "09:02", subs) == [DuePair(3, 7)]

    def test_order_follows_subscriptions(self, evaluator):
        subs = [
            _sub(id=5, next_due_date="2024-06-13"),
            _sub(id=2, next_due_date="2024-06-11"),
        ]
        assert evaluator.evaluate("2024-06-10", "09:00", subs) == [DuePair(5, 3), DuePair(2, 1)]

    def test_unparseable_now(self, evaluator):
        assert evaluator.evaluate("2024-06-10", "garbage", [_sub()]) == []
