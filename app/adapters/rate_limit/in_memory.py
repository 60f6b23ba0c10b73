"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: each key has its own lock; a registry lock only guards
  creation and eviction of entries.
- Expiry is lazy, with an opportunistic sweep every ``sweep_interval`` checks.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from app.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateKey,
    RateLimitConfig,
    RateLimitDecision,
)

logger = logging.getLogger(__name__)


@dataclass
class _CounterEntry:
    count: int = 0
    window_start: float = 0.0
    expires_at: float = 0.0
    evicted: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def is_expired(self, now: float) -> bool:
        # A fresh entry (count 0) is treated as expired so the first hit opens a window.
        if self.count == 0:
            return True
        return now >= self.expires_at and now > self.window_start


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per key in a window anchored at the first hit.

    The window for a key starts at the first counted request and lasts
    ``config.window_seconds``. Rejected requests are not counted.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        sweep_interval: int = 1000,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            clock: Time source function returning UNIX time in seconds.
            sweep_interval: Number of checks between expired-entry sweeps.

        Raises:
            ValueError: If sweep_interval is invalid.
        """
        if sweep_interval < 1:
            raise ValueError("sweep_interval must be >= 1")

        self._clock = clock
        self._sweep_interval = sweep_interval
        self._registry_lock = threading.Lock()
        self._entries: dict[RateKey, _CounterEntry] = {}
        self._checks_since_sweep = 0

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._entries)

    def _get_entry(self, key: RateKey) -> _CounterEntry:
        with self._registry_lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = _CounterEntry()
                self._entries[key] = entry
            return entry

    def _decide(self, entry: _CounterEntry, config: RateLimitConfig, now: float) -> RateLimitDecision:
        if entry.is_expired(now):
            entry.count = 0
            entry.window_start = now
            entry.expires_at = now + config.window_seconds

        reset_at = int(math.ceil(entry.expires_at))

        if entry.count < config.max_requests:
            entry.count += 1
            return RateLimitDecision(
                allowed=True,
                limit=config.max_requests,
                remaining=config.max_requests - entry.count,
                reset_at=reset_at,
                retry_after_seconds=None,
            )

        return RateLimitDecision(
            allowed=False,
            limit=config.max_requests,
            remaining=0,
            reset_at=reset_at,
            retry_after_seconds=max(0, int(math.ceil(entry.expires_at - now))),
        )

    def check(self, scope: str, config: RateLimitConfig, client_id: str) -> RateLimitDecision:
        """Count one request for the key and decide whether it is admitted.

        The decision and the increment happen under the key's lock, so
        concurrent callers on one key never admit more than
        ``config.max_requests`` per window.

        Args:
            scope: Name of the limited operation.
            config: Limit for the scope.
            client_id: Client identity (e.g. remote address).

        Returns:
            RateLimitDecision with the admit/reject outcome.

        Raises:
            ValueError: If scope or client_id is empty.
        """
        if not scope:
            raise ValueError("scope must be a non-empty string")
        if not client_id:
            raise ValueError("client_id must be a non-empty string")

        key = RateKey(scope=scope, client_id=client_id)

        while True:
            entry = self._get_entry(key)
            with entry.lock:
                if entry.evicted:
                    # Swept between lookup and lock; retry against the replacement.
                    continue
                decision = self._decide(entry, config, self._clock())
            break

        self._maybe_sweep()
        return decision

    def _maybe_sweep(self) -> None:
        with self._registry_lock:
            self._checks_since_sweep += 1
            if self._checks_since_sweep < self._sweep_interval:
                return
            self._checks_since_sweep = 0
        self.sweep()

    def sweep(self) -> int:
        """Drop entries whose window has passed.

        Entries currently held by another caller are left for a later sweep.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        removed = 0
        with self._registry_lock:
            for key, entry in list(self._entries.items()):
                if not entry.lock.acquire(blocking=False):
                    continue
                try:
                    if entry.is_expired(now):
                        entry.evicted = True
                        del self._entries[key]
                        removed += 1
                finally:
                    entry.lock.release()

        if removed:
            logger.debug(
                "rate_limit.swept",
                extra={"removed": removed, "remaining_entries": len(self._entries)},
            )
        return removed

    def reset(self) -> None:
        """Drop all counters (e.g. between tests)."""
        with self._registry_lock:
            for entry in self._entries.values():
                entry.evicted = True
            self._entries.clear()
            self._checks_since_sweep = 0
