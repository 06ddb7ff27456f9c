"""Tests for the clock abstraction."""

from datetime import date, datetime, timedelta, timezone

from bookkeeping_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:

    def test_default_today(self):
        assert DeterministicClock().today() == date(2024, 1, 15)

    def test_repeated_calls_are_stable(self):
        clock = DeterministicClock()
        assert clock.now() == clock.now()

    def test_advance(self):
        clock = DeterministicClock()
        start = clock.now()
        clock.advance(90)
        assert clock.now() - start == timedelta(seconds=90)

    def test_set_today_resets_advance(self):
        clock = DeterministicClock()
        clock.advance(3600)
        clock.set_today(date(2025, 3, 15))
        assert clock.now() == datetime(2025, 3, 15, 12, tzinfo=timezone.utc)


class TestSystemClock:

    def test_today_follows_business_time_zone(self):
        ahead = SystemClock(timezone(timedelta(hours=14)))
        behind = SystemClock(timezone(timedelta(hours=-12)))

        assert ahead.now().tzinfo is not None
        assert (ahead.today() - behind.today()).days in (1, 2)
