"""
Domain exceptions for the Longevity League core.

Purpose
-------
Define the structured, domain-specific exception hierarchy for scoring,
ranking and badge logic. Services raise these for missing entities, invalid
state transitions, and failed rank passes; outer layers (HTTP handlers, job
runners) translate them into responses or retries.

Design Notes
------------
- All domain exceptions inherit from `LongevityDomainException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict-like)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `is_retryable`: whether the operation can be retried
  - `error_code`: short, stable identifier for programmatic use
- Helper functions (`is_transient_error`, `get_error_severity`, `should_alert`)
  centralize common exception handling patterns.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"
    INFO = "info"  # Expected outcome (e.g., unknown athlete id)
    WARNING = "warning"  # Handled but worth watching (e.g., lock contention)
    ERROR = "error"
    CRITICAL = "critical"


class LongevityDomainException(Exception):
    """
    Base exception for all domain-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error (dict-like)
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling

    Example:
        >>> raise LongevityDomainException(
        ...     "League scoring failed",
        ...     {"league_id": "lg_1"}
        ... )
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


class NotFoundError(LongevityDomainException):
    """
    Raised when a requested entity cannot be found.

    Args:
        resource_type: Type of resource (e.g., "Athlete", "League", "Season")
        identifier: Optional identifier for the missing resource
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier

        if identifier is not None:
            message = f"{resource_type} not found: {identifier}"
        else:
            message = f"{resource_type} not found"

        super().__init__(
            message,
            details={
                "resource_type": resource_type,
                "identifier": identifier,
            },
            error_code=f"{resource_type.upper()}_NOT_FOUND",
        )


class AthleteNotFoundError(NotFoundError):
    """Raised when an athlete id does not resolve to a stored athlete."""

    def __init__(self, athlete_id: str) -> None:
        self.athlete_id = athlete_id
        super().__init__("Athlete", athlete_id)


class LeagueNotFoundError(NotFoundError):
    """Raised when a league id does not resolve to a stored league."""

    def __init__(self, league_id: str) -> None:
        self.league_id = league_id
        super().__init__("League", league_id)


class SeasonNotFoundError(NotFoundError):
    """Raised when a season id does not resolve to a stored season."""

    def __init__(self, season_id: str) -> None:
        self.season_id = season_id
        super().__init__("Season", season_id)


class ValidationError(LongevityDomainException):
    """
    Raised when an input fails domain validation.

    Args:
        field: Name of the field that failed validation
        message: Explanation of why validation failed
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        error_message = f"Validation error for {field}: {message}"
        super().__init__(
            error_message,
            details={
                "field": field,
                "validation_message": message,
            },
            error_code=f"VALIDATION_{field.upper()}",
        )


class InvalidOperationError(LongevityDomainException):
    """
    Raised when an operation is not allowed in the entity's current state.

    Args:
        action: Description of the invalid action
        reason: Explanation of why it's not allowed

    Example:
        >>> raise InvalidOperationError(
        ...     "complete_season",
        ...     "Season is already completed"
        ... )
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO
    DEFAULT_RETRYABLE = False

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        self.reason = reason
        message = f"Invalid operation '{action}': {reason}"
        super().__init__(
            message,
            details={
                "action": action,
                "reason": reason,
            },
            error_code=f"INVALID_{action.upper()}",
        )


class RankRecalculationError(LongevityDomainException):
    """
    Raised when a rank pass cannot be committed.

    The pass runs in a single transaction, so a failure leaves the previous
    ranking intact and the whole pass can be retried.

    Args:
        scope: Which ranking failed ("league" or "athlete")
        season_id: Season whose ranking was being recalculated
        reason: Underlying failure description
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = True

    def __init__(self, scope: str, season_id: str, reason: str) -> None:
        self.scope = scope
        self.season_id = season_id
        self.reason = reason
        super().__init__(
            f"{scope.capitalize()} rank recalculation failed for season {season_id}: {reason}",
            details={
                "scope": scope,
                "season_id": season_id,
                "reason": reason,
            },
            error_code=f"{scope.upper()}_RANK_RECALCULATION_FAILED",
        )


class LockTimeoutError(LongevityDomainException):
    """
    Raised when a serialization lock cannot be acquired in time.

    Args:
        lock_key: Key of the contended lock
        wait_timeout: Seconds spent waiting before giving up
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True

    def __init__(self, lock_key: str, wait_timeout: float) -> None:
        self.lock_key = lock_key
        self.wait_timeout = wait_timeout
        super().__init__(
            f"Could not acquire lock {lock_key} within {wait_timeout:.1f}s",
            details={
                "lock_key": lock_key,
                "wait_timeout": wait_timeout,
                "retry_after": wait_timeout,
            },
            error_code="LOCK_TIMEOUT",
        )


# Utility functions for exception handling patterns


def is_transient_error(exc: Exception) -> bool:
    """
    Check if an exception represents a transient error that can be retried.

    Args:
        exc: Exception to check

    Returns:
        True if error is retryable, False otherwise.
    """
    if isinstance(exc, LongevityDomainException):
        return exc.is_retryable
    return False


def get_error_severity(exc: Exception) -> ErrorSeverity:
    """
    Get the severity level of an exception for logging.

    Args:
        exc: Exception to check

    Returns:
        ErrorSeverity level.
    """
    if isinstance(exc, LongevityDomainException):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: Exception) -> bool:
    """
    Determine if an exception should trigger alerting.

    Args:
        exc: Exception to check

    Returns:
        True if severity is ERROR or CRITICAL, False otherwise.
    """
    severity = get_error_severity(exc)
    return severity in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
