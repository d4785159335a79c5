"""
Circuit breaker guarding calls to the remote content service.

When the store keeps failing, further calls fail fast with
CircuitBreakerOpenError (an UnavailableError) instead of piling up
in-flight requests. After the recovery timeout one trial request is let through.

States:
- CLOSED: Normal operation, requests pass through
- OPEN: Store failing, requests blocked
- HALF_OPEN: Testing whether the store recovered

Usage:
    breaker = get_circuit_breaker("content_store", failure_threshold=5)

    if not breaker.can_execute():
        raise CircuitBreakerOpenError(breaker.name, breaker.time_until_recovery())
    try:
        result = await call_store()
        await breaker.record_success()
    except UnavailableError:
        await breaker.record_failure()
        raise
"""

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import structlog

from src.monitoring.metrics import (
    record_circuit_breaker_failure,
    update_circuit_breaker_state,
)

logger = structlog.get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreaker:
    """
    Failure counter with open/half-open/closed transitions.

    Args:
        name: Identifier for this circuit (e.g., "content_store")
        failure_threshold: Consecutive failures before opening
        recovery_timeout: Seconds to wait before testing recovery
        success_threshold: Successful trial requests needed to close again
    """

    name: str
    failure_threshold: int = 5
    recovery_timeout: float = 30.0
    success_threshold: int = 1

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _success_count: int = field(default=0, init=False)
    _opened_at: Optional[float] = field(default=None, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    @property
    def state(self) -> CircuitState:
        """Current state; an open circuit turns half-open once the timeout passes."""
        if self._state == CircuitState.OPEN and self._opened_at is not None:
            if time.monotonic() - self._opened_at >= self.recovery_timeout:
                self._transition(CircuitState.HALF_OPEN)
                self._success_count = 0
        return self._state

    def can_execute(self) -> bool:
        return self.state != CircuitState.OPEN

    def time_until_recovery(self) -> float:
        if self._state != CircuitState.OPEN or self._opened_at is None:
            return 0.0
        elapsed = time.monotonic() - self._opened_at
        return max(0.0, self.recovery_timeout - elapsed)

    def _transition(self, new_state: CircuitState) -> None:
        if new_state == self._state:
            return
        logger.info(
            "circuit_breaker_transition",
            name=self.name,
            from_state=self._state.value,
            to_state=new_state.value,
        )
        self._state = new_state
        update_circuit_breaker_state(self.name, new_state.value)

    async def record_success(self) -> None:
        async with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                self._success_count += 1
                if self._success_count >= self.success_threshold:
                    self._failure_count = 0
                    self._opened_at = None
                    self._transition(CircuitState.CLOSED)
            else:
                self._failure_count = 0

    async def record_failure(self) -> None:
        async with self._lock:
            self._failure_count += 1
            record_circuit_breaker_failure(self.name)

            state = self.state
            if state == CircuitState.HALF_OPEN or (
                state == CircuitState.CLOSED
                and self._failure_count >= self.failure_threshold
            ):
                self._opened_at = time.monotonic()
                logger.warning(
                    "circuit_breaker_opened",
                    name=self.name,
                    failure_count=self._failure_count,
                    recovery_timeout=self.recovery_timeout,
                )
                self._transition(CircuitState.OPEN)

    def reset(self) -> None:
        """Force the circuit closed (used by tests and manual recovery)."""
        self._failure_count = 0
        self._success_count = 0
        self._opened_at = None
        self._transition(CircuitState.CLOSED)


_circuit_breakers: dict[str, CircuitBreaker] = {}


def get_circuit_breaker(
    name: str,
    failure_threshold: int = 5,
    recovery_timeout: float = 30.0,
) -> CircuitBreaker:
    """Get or create the named circuit breaker."""
    if name not in _circuit_breakers:
        _circuit_breakers[name] = CircuitBreaker(
            name=name,
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
        )
    return _circuit_breakers[name]


def reset_all_circuit_breakers() -> None:
    for breaker in _circuit_breakers.values():
        breaker.reset()
