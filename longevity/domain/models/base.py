"""
Base domain validation helpers.

Domain value objects in this package are frozen dataclasses that validate
themselves in `__post_init__` and raise `DomainValidationError` on bad input.
They are separate from the SQLAlchemy models: stores convert rows into
these snapshots so the rule and scoring code never touches a session.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional


class DomainValidationError(Exception):
    """
    Raised when a domain value object is constructed with invalid data.

    Parameters
    ----------
    message : str
        Human-readable error message
    field : Optional[str]
        Field name that failed validation (if applicable)
    """

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


def validate_non_negative(value: float, field_name: str) -> None:
    if value < 0:
        raise DomainValidationError(
            f"{field_name} must be non-negative, got {value}",
            field=field_name,
        )


def validate_finite(value: float, field_name: str) -> None:
    """Scores feed averages and sort keys; NaN would poison both."""
    if not math.isfinite(value):
        raise DomainValidationError(f"{field_name} must be finite, got {value}", field=field_name)


def validate_not_blank(value: str, field_name: str) -> None:
    if not value or not value.strip():
        raise DomainValidationError(f"{field_name} cannot be empty", field=field_name)


def validate_aware(value: datetime, field_name: str) -> None:
    if value.tzinfo is None or value.utcoffset() is None:
        raise DomainValidationError(
            f"{field_name} must be timezone-aware",
            field=field_name,
        )
