"""
Core infrastructure modules for Tadabbur.

Provides common utilities used across the application:
- exceptions: Standardized exception hierarchy with error kinds
- circuit_breaker: Resilience pattern for the remote content store
- logging_config: structlog setup
"""

from src.core.exceptions import (
    ErrorKind,
    TadabburError,
    RetryableError,
    PermanentError,
    ServiceError,
    UnauthorizedError,
    NotFoundError,
    InvalidArgumentError,
    ConflictError,
    UnavailableError,
    ConfigurationError,
    CircuitBreakerOpenError,
    error_for_kind,
)

from src.core.circuit_breaker import (
    CircuitBreaker,
    CircuitState,
    get_circuit_breaker,
    reset_all_circuit_breakers,
)

__all__ = [
    # Exceptions
    "ErrorKind",
    "TadabburError",
    "RetryableError",
    "PermanentError",
    "ServiceError",
    "UnauthorizedError",
    "NotFoundError",
    "InvalidArgumentError",
    "ConflictError",
    "UnavailableError",
    "ConfigurationError",
    "CircuitBreakerOpenError",
    "error_for_kind",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitState",
    "get_circuit_breaker",
    "reset_all_circuit_breakers",
]
