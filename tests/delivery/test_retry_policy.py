"""Tests for RetryPolicy."""

import random

import pytest

from commit_sync.config import BatchingConfig, RetryStrategy
from commit_sync.delivery import RetryPolicy


class TestDelay:
    """Tests for RetryPolicy.delay_ms."""

    def test_no_delay_before_first_attempt(self):
        """Attempt 1 is never delayed."""
        policy = RetryPolicy(base_delay_ms=500)

        assert policy.delay_ms(1) == 0

    def test_fixed_delay(self):
        """The fixed strategy waits the base delay before every retry."""
        policy = RetryPolicy(base_delay_ms=500, strategy=RetryStrategy.FIXED)

        assert [policy.delay_ms(n) for n in (2, 3, 4)] == [500, 500, 500]

    def test_exponential_delay(self):
        """The exponential strategy multiplies the delay after each retry."""
        policy = RetryPolicy(
            base_delay_ms=100,
            strategy=RetryStrategy.EXPONENTIAL,
            multiplier=3.0,
        )

        assert [policy.delay_ms(n) for n in (2, 3, 4)] == [100, 300, 900]

    def test_delay_capped(self):
        """Delays never exceed max_delay_ms."""
        policy = RetryPolicy(
            base_delay_ms=1000,
            strategy=RetryStrategy.EXPONENTIAL,
            max_delay_ms=1500,
        )

        assert policy.delay_ms(5) == 1500

    def test_jitter_stays_within_spread(self):
        """Jitter randomizes the delay within +/- jitter * delay."""
        policy = RetryPolicy(base_delay_ms=1000, jitter=0.2, rng=random.Random(42))

        delays = [policy.delay_ms(2) for _ in range(50)]

        assert all(800 <= d <= 1200 for d in delays)
        assert len(set(delays)) > 1

    def test_invalid_attempts_rejected(self):
        """At least one attempt is required."""
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestWait:
    """Tests for RetryPolicy.wait."""

    @pytest.mark.asyncio
    async def test_wait_uses_injected_sleep(self):
        """The injected sleep receives the delay in seconds."""
        slept: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            slept.append(seconds)

        policy = RetryPolicy(base_delay_ms=250, sleep=fake_sleep)

        assert await policy.wait(1) == 0
        assert await policy.wait(2) == 0.25
        assert slept == [0.25]


class TestFromConfig:
    """Tests for building a policy from BatchingConfig."""

    def test_from_config(self):
        """Config fields map onto the policy."""
        config = BatchingConfig(
            max_retries=5,
            retry_delay_ms=200,
            retry_strategy=RetryStrategy.EXPONENTIAL,
            backoff_multiplier=1.5,
            max_retry_delay_ms=10_000,
            retry_jitter=0.1,
        )

        policy = RetryPolicy.from_config(config)

        assert policy.max_attempts == 5
        assert policy.base_delay_ms == 200
        assert policy.strategy == RetryStrategy.EXPONENTIAL
        assert policy.multiplier == 1.5
        assert policy.max_delay_ms == 10_000
        assert policy.jitter == 0.1
