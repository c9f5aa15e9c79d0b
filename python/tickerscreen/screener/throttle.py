"""Pacing primitives for external quote requests."""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from loguru import logger


class RateLimiter(ABC):
    """Released once before every symbol the orchestrator fetches."""

    @abstractmethod
    async def wait(self) -> None:
        """Suspend until the next request may start."""


class NoopRateLimiter(RateLimiter):
    """Never waits."""

    async def wait(self) -> None:
        return None


class FixedIntervalRateLimiter(RateLimiter):
    """Ensure a minimum interval between external requests.

    The interval is static: it does not react to provider rate-limit errors.
    """

    def __init__(
        self,
        min_interval_s: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._min_interval_s = min_interval_s
        self._sleep = sleep
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_call: float | None = None

    @classmethod
    def from_budget(
        cls,
        rate_limit_per_minute: int,
        calls_per_symbol: int,
        **kwargs,
    ) -> "FixedIntervalRateLimiter":
        """Size the interval so calls_per_symbol * symbols/min <= rate limit."""
        if rate_limit_per_minute <= 0:
            raise ValueError("rate_limit_per_minute must be positive")
        interval = 60.0 * max(calls_per_symbol, 1) / rate_limit_per_minute
        logger.debug(
            "Pacing {calls} call(s) per symbol at {limit}/min -> {interval:.3f}s",
            calls=calls_per_symbol,
            limit=rate_limit_per_minute,
            interval=interval,
        )
        return cls(interval, **kwargs)

    @property
    def min_interval_s(self) -> float:
        return self._min_interval_s

    async def wait(self) -> None:
        if self._min_interval_s <= 0:
            return
        async with self._lock:
            if self._last_call is not None:
                wait_for = self._min_interval_s - (self._clock() - self._last_call)
                if wait_for > 0:
                    await self._sleep(wait_for)
            self._last_call = self._clock()
