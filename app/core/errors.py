"""Application-level exception types.

This module defines domain errors used across the guards and adapters,
enabling consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    origin: str
    scope: str
    limit: int
    retry_after: int


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ConfigurationAppError(AppError):
    """Raised when configured values cannot be used (e.g. a malformed origin URL)."""


class RateLimitExceededError(AppError):
    """Raised by the rate limit guard when a client is over its budget.

    ``headers`` are copied verbatim onto the 429 response.
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: ErrorDetails | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(code=code, message=message, details=details)
        self.headers = headers or {}


class InvalidOriginError(AppError):
    """Raised by the origin guard when the declared origin is missing or not allowed."""
