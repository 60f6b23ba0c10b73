"""Rate limiter interfaces and value types.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the counter store can be swapped without touching the guards.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateKey:
    """Counter lookup key: one budget per scope per client."""

    scope: str
    client_id: str


@dataclass(frozen=True)
class RateLimitConfig:
    """Per-route limit: at most ``max_requests`` per ``window_seconds``.

    A window of 0 is accepted. It rejects repeat hits landing in the same
    clock instant and resets at the next one.

    Raises:
        ValueError: If max_requests < 1 or window_seconds < 0.
    """

    max_requests: int = 1
    window_seconds: float = 1.0

    def __post_init__(self) -> None:
        if self.max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if self.window_seconds < 0:
            raise ValueError("window_seconds must be >= 0")


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is admitted.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when rejected).
        reset_at: UNIX epoch seconds when the current window ends.
        retry_after_seconds: Suggested wait in seconds when rejected, else None.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, scope: str, config: RateLimitConfig, client_id: str) -> RateLimitDecision:
        """Count one request for ``(scope, client_id)`` and decide admit/reject.

        Args:
            scope: Name of the independently limited operation.
            config: Limit applied to the scope.
            client_id: Client identity, typically the remote address.

        Returns:
            RateLimitDecision describing whether the request is admitted.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Drop all counters."""
        raise NotImplementedError
