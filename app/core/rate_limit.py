"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Each guarded route declares its own limit explicitly:

    @router.get("/v1/time", dependencies=[Depends(RequestLimit("time", max_requests=5, seconds=10))])

Rate limiting strategy:
- Fixed window per (scope, client address), anchored at the first request.
- One process-wide counter store shared by every route.
- Rejections raise RateLimitExceededError, rendered as a plain-text 429.
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitConfig
from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core.config import settings
from app.core.errors import RateLimitExceededError

logger = logging.getLogger(__name__)


_limiter: AbstractRateLimiter | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide rate limiter instance.

    The instance is created on first use and kept in-module so counters
    survive across requests. State is never persisted.

    Returns:
        AbstractRateLimiter: Shared limiter instance.
    """

    global _limiter

    if _limiter is None:
        _limiter = InMemoryFixedWindowRateLimiter(
            sweep_interval=settings.app.rate_limit_sweep_interval,
        )

    return _limiter


def get_client_id(request: Request) -> str:
    """Resolve the client identifier used in the rate limit key.

    Args:
        request: FastAPI request.

    Returns:
        str: Remote address, first X-Forwarded-For hop when trusted, or "unknown".
    """

    if settings.app.trust_forwarded_for:
        forwarded = request.headers.get("X-Forwarded-For", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    return request.client.host if request.client else "unknown"


def _hash_client_id(client_id: str) -> str:
    """Hash the client id for logging without exposing addresses."""
    return hashlib.sha256(client_id.encode()).hexdigest()[:16]


class RequestLimit:
    """FastAPI dependency limiting a route to ``max_requests`` per ``seconds`` per client.

    Args:
        name: Scope name; routes sharing a name share a budget.
        max_requests: Requests admitted per window (default 1).
        seconds: Window length in seconds (default 1).

    Raises:
        ValueError: At construction, if the limit is invalid.
    """

    def __init__(self, name: str, *, max_requests: int = 1, seconds: float = 1) -> None:
        if not name:
            raise ValueError("name must be a non-empty string")
        self.name = name
        self.config = RateLimitConfig(max_requests=max_requests, window_seconds=seconds)

    def __repr__(self) -> str:
        return (
            f"RequestLimit(name={self.name!r}, max_requests={self.config.max_requests}, "
            f"seconds={self.config.window_seconds})"
        )

    def __call__(self, request: Request) -> None:
        """Count the request against the scope and raise when over the limit.

        Args:
            request: FastAPI request.

        Raises:
            RateLimitExceededError: When the client exceeded the scope's budget.
        """

        if not settings.app.rate_limit_enabled:
            return

        client_id = get_client_id(request)
        decision = get_rate_limiter().check(self.name, self.config, client_id)

        if decision.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "scope": self.name,
                    "client_hash": _hash_client_id(client_id),
                    "limit": decision.limit,
                    "remaining": decision.remaining,
                    "window_s": self.config.window_seconds,
                },
            )
            return

        retry_after = decision.retry_after_seconds or 0
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "scope": self.name,
                "client_hash": _hash_client_id(client_id),
                "limit": decision.limit,
                "window_s": self.config.window_seconds,
                "retry_after_s": retry_after,
            },
        )

        headers: dict[str, str] = {}
        if settings.app.rate_limit_include_headers:
            headers["Retry-After"] = str(retry_after)
            headers["X-RateLimit-Limit"] = str(decision.limit)
            headers["X-RateLimit-Remaining"] = str(decision.remaining)
            headers["X-RateLimit-Reset"] = str(decision.reset_at)

        raise RateLimitExceededError(
            code="rate_limit_exceeded",
            message=f"Request is exceeded. Try again in {retry_after} seconds.",
            details={
                "scope": self.name,
                "limit": decision.limit,
                "retry_after": retry_after,
            },
            headers=headers,
        )
