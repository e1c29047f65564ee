"""
Tests for fixed-interval retry polling.
"""

import pytest

from flowplane.core.reliability.retry import retry


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class TestRetry:
    def test_immediate_success(self):
        clock = FakeClock()
        assert retry(10, lambda: True, interval=1, clock=clock.time, sleep=clock.sleep)
        assert clock.sleeps == []

    def test_succeeds_after_attempts(self):
        clock = FakeClock()
        answers = iter([False, False, True])
        assert retry(10, lambda: next(answers), interval=1, clock=clock.time, sleep=clock.sleep)
        assert clock.sleeps == [1, 1]

    def test_fixed_interval_no_backoff(self):
        clock = FakeClock()
        assert not retry(5, lambda: False, interval=1, clock=clock.time, sleep=clock.sleep)
        assert set(clock.sleeps) == {1}

    def test_deadline_not_overshot(self):
        clock = FakeClock()
        calls = []

        def probe() -> bool:
            calls.append(clock.now)
            return False

        assert not retry(2.5, probe, interval=1, clock=clock.time, sleep=clock.sleep)
        assert clock.now == pytest.approx(2.5)
        assert calls == [0, 1, 2, 2.5]

    def test_real_clock_short_wait(self):
        answers = iter([False, True])
        assert retry(1, lambda: next(answers), interval=0.01)
