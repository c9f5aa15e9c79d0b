"""Tests for request pacing."""

import pytest

from tickerscreen.screener.throttle import FixedIntervalRateLimiter, NoopRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def test_interval_from_budget():
    limiter = FixedIntervalRateLimiter.from_budget(60, calls_per_symbol=2)
    assert limiter.min_interval_s == pytest.approx(2.0)
    limiter = FixedIntervalRateLimiter.from_budget(60, calls_per_symbol=1)
    assert limiter.min_interval_s == pytest.approx(1.0)


def test_invalid_budget():
    with pytest.raises(ValueError):
        FixedIntervalRateLimiter.from_budget(0, calls_per_symbol=1)


@pytest.mark.asyncio
async def test_first_call_does_not_wait_and_later_calls_are_spaced():
    clock = FakeClock()
    limiter = FixedIntervalRateLimiter(1.5, sleep=clock.sleep, clock=clock)
    await limiter.wait()
    assert clock.sleeps == []
    clock.now += 0.5
    await limiter.wait()
    assert clock.sleeps == [pytest.approx(1.0)]
    clock.now += 2.0
    await limiter.wait()
    assert len(clock.sleeps) == 1


@pytest.mark.asyncio
async def test_zero_interval_never_sleeps():
    clock = FakeClock()
    limiter = FixedIntervalRateLimiter(0.0, sleep=clock.sleep, clock=clock)
    for _ in range(3):
        await limiter.wait()
    assert clock.sleeps == []
    await NoopRateLimiter().wait()
