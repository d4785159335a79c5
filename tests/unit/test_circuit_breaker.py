"""Unit tests for the circuit breaker."""

import pytest
from unittest.mock import patch

from src.core.circuit_breaker import CircuitBreaker, CircuitState


class TestCircuitBreaker:
    """Test state transitions."""

    @pytest.mark.asyncio
    async def test_opens_after_threshold(self):
        breaker = CircuitBreaker("test", failure_threshold=3, recovery_timeout=30)

        for _ in range(3):
            await breaker.record_failure()

        assert breaker.state == CircuitState.OPEN
        assert not breaker.can_execute()
        assert breaker.time_until_recovery() > 0

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self):
        breaker = CircuitBreaker("test", failure_threshold=2)

        await breaker.record_failure()
        await breaker.record_success()
        await breaker.record_failure()

        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_after_timeout_then_closes(self):
        breaker = CircuitBreaker("test", failure_threshold=1, recovery_timeout=10)

        with patch("src.core.circuit_breaker.time.monotonic", return_value=100.0):
            await breaker.record_failure()
        with patch("src.core.circuit_breaker.time.monotonic", return_value=111.0):
            assert breaker.state == CircuitState.HALF_OPEN
            await breaker.record_success()

        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_half_open_failure_reopens(self):
        breaker = CircuitBreaker("test", failure_threshold=1, recovery_timeout=10)

        with patch("src.core.circuit_breaker.time.monotonic", return_value=100.0):
            await breaker.record_failure()
        with patch("src.core.circuit_breaker.time.monotonic", return_value=111.0):
            assert breaker.can_execute()
            await breaker.record_failure()
            assert breaker.state == CircuitState.OPEN

    @pytest.mark.asyncio
    async def test_reset(self):
        breaker = CircuitBreaker("test", failure_threshold=1)
        await breaker.record_failure()

        breaker.reset()

        assert breaker.can_execute()
