"""Rate limiting adapters.

This package provides a small abstraction layer so the guard can run on an
in-memory counter store while keeping the HTTP layer independent of the
storage behind it.
"""

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateKey,
    RateLimitConfig,
    RateLimitDecision,
)
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RateKey",
    "RateLimitConfig",
    "RateLimitDecision",
]
