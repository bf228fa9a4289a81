"""Retry policy for batch delivery.

A RetryPolicy is built once per run and asked for the delay before
each retry. The sleep function and random source are injectable so
tests can run retries instantly and deterministically.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from commit_sync.config import BatchingConfig, RetryStrategy

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry policy with fixed or exponential delay and optional jitter.

    Attempts are numbered from 1. No delay precedes attempt 1; the delay
    before attempt n (n >= 2) is:

        fixed:        base_delay_ms
        exponential:  base_delay_ms * multiplier ** (n - 2)

    capped at max_delay_ms, then randomized by +/- jitter * delay.
    """

    max_attempts: int = 3
    base_delay_ms: int = 1000
    strategy: RetryStrategy = RetryStrategy.FIXED
    multiplier: float = 2.0
    max_delay_ms: int = 60000
    jitter: float = 0.0
    sleep: SleepFunc = field(default=asyncio.sleep, compare=False, repr=False)
    rng: random.Random = field(default_factory=random.Random, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if not 0.0 <= self.jitter <= 1.0:
            raise ValueError("jitter must be between 0 and 1")

    @classmethod
    def from_config(
        cls,
        config: BatchingConfig,
        *,
        sleep: SleepFunc | None = None,
        rng: random.Random | None = None,
    ) -> RetryPolicy:
        """Build a policy from batching configuration.

        Args:
            config: Batching configuration
            sleep: Replacement for asyncio.sleep (tests)
            rng: Random source for jitter (tests)
        """
        return cls(
            max_attempts=config.max_retries,
            base_delay_ms=config.retry_delay_ms,
            strategy=config.retry_strategy,
            multiplier=config.backoff_multiplier,
            max_delay_ms=config.max_retry_delay_ms,
            jitter=config.retry_jitter,
            sleep=sleep or asyncio.sleep,
            rng=rng or random.Random(),
        )

    def delay_ms(self, attempt: int) -> float:
        """Delay in milliseconds before the given attempt."""
        if attempt <= 1:
            return 0.0

        if self.strategy == RetryStrategy.EXPONENTIAL:
            delay = self.base_delay_ms * self.multiplier ** (attempt - 2)
        else:
            delay = float(self.base_delay_ms)
        delay = min(delay, float(self.max_delay_ms))

        if self.jitter:
            spread = delay * self.jitter
            delay += self.rng.uniform(-spread, spread)
        return max(0.0, delay)

    async def wait(self, attempt: int) -> float:
        """Sleep for the delay preceding an attempt.

        Returns:
            Seconds waited
        """
        seconds = self.delay_ms(attempt) / 1000
        if seconds > 0:
            await self.sleep(seconds)
        return seconds
