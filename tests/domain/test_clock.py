"""
Tests for delivery_kernel.domain.clock.

Covers:
- DeterministicClock is stable until advanced
- advance() accepts seconds or a timedelta
- SystemClock returns aware UTC datetimes
"""

from datetime import UTC, datetime, timedelta

from delivery_kernel.domain.clock import EPOCH_FOR_TESTS, DeterministicClock, SystemClock


class TestDeterministicClock:
    def test_defaults_to_fixed_epoch(self):
        clock = DeterministicClock()
        assert clock.now() == EPOCH_FOR_TESTS
        assert clock.now() == clock.now()

    def test_advance_by_seconds(self):
        clock = DeterministicClock(datetime(2024, 6, 1, tzinfo=UTC))
        assert clock.advance(90) == datetime(2024, 6, 1, 0, 1, 30, tzinfo=UTC)

    def test_advance_by_timedelta(self):
        clock = DeterministicClock()
        clock.advance(timedelta(days=1))
        assert clock.now() - EPOCH_FOR_TESTS == timedelta(days=1)


class TestSystemClock:
    def test_now_is_aware_utc(self):
        now = SystemClock().now()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)
