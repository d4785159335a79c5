"""
Core exception hierarchy for Tadabbur.

Provides standardized exception types with categorization for retry logic.
Every failure that reaches a caller carries an ErrorKind so a front end can
tell "insufficient permission" apart from "not found" or "validation failed".
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Error kinds surfaced by the content service and the core."""

    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"
    CONFLICT = "conflict"
    UNAVAILABLE = "unavailable"


# =============================================================================
# Base Exceptions
# =============================================================================


class TadabburError(Exception):
    """Base exception for all Tadabbur errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class RetryableError(TadabburError):
    """
    Transient errors that may succeed on a later attempt.

    Only idempotent reads are retried automatically, and only once.
    """

    pass


class PermanentError(TadabburError):
    """
    Errors that won't be fixed by retrying.

    Examples: Insufficient role, missing rejection reason, unknown item.
    """

    pass


# =============================================================================
# Service Errors
# =============================================================================


class ServiceError(TadabburError):
    """Base exception for failures of a content or role operation.

    Args:
        operation: Operation that failed (e.g. "reject", "list_public")
        message: Human readable description
        details: Context such as item_id, actor_id and the underlying cause
    """

    kind: ErrorKind = ErrorKind.UNAVAILABLE

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ):
        self.operation = operation
        details = dict(details or {})
        details.setdefault("operation", operation)
        super().__init__(f"[{operation}] {message}", details)

    @property
    def item_id(self) -> Optional[str]:
        return self.details.get("item_id")

    @property
    def actor_id(self) -> Optional[str]:
        return self.details.get("actor_id")


class UnauthorizedError(ServiceError, PermanentError):
    """Raised when the acting actor's role does not permit the operation."""

    kind = ErrorKind.UNAUTHORIZED


class NotFoundError(ServiceError, PermanentError):
    """Raised when the requested item or actor does not exist."""

    kind = ErrorKind.NOT_FOUND


class InvalidArgumentError(ServiceError, PermanentError):
    """Raised when input fails validation before any remote call."""

    kind = ErrorKind.INVALID_ARGUMENT


class ConflictError(ServiceError, PermanentError):
    """Raised when the current state does not allow the transition."""

    kind = ErrorKind.CONFLICT


class UnavailableError(ServiceError, RetryableError):
    """Raised when the content service is temporarily unreachable."""

    kind = ErrorKind.UNAVAILABLE


_ERRORS_BY_KIND: dict[ErrorKind, type[ServiceError]] = {
    ErrorKind.UNAUTHORIZED: UnauthorizedError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.INVALID_ARGUMENT: InvalidArgumentError,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.UNAVAILABLE: UnavailableError,
}


def error_for_kind(
    kind: ErrorKind,
    operation: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> ServiceError:
    """Build the concrete ServiceError subclass for an ErrorKind."""
    return _ERRORS_BY_KIND[kind](operation, message, details)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(PermanentError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        details = {"config_key": config_key} if config_key else None
        super().__init__(message, details)


# =============================================================================
# Circuit Breaker
# =============================================================================


class CircuitBreakerOpenError(UnavailableError):
    """Raised when circuit breaker is open and blocking requests."""

    def __init__(self, service: str, recovery_time: float):
        self.service = service
        self.recovery_time = recovery_time
        super().__init__(
            "circuit_breaker",
            f"Circuit breaker open for {service}. Recovery in {recovery_time:.1f}s",
            {"service": service, "recovery_time": recovery_time},
        )
