"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It selects the testing environment and a known allow-list before the
settings module is imported anywhere.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_CORS_ORIGIN", "https://app.example.com,http://localhost:3000")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock

import pytest

from app.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from app.core import rate_limit


@pytest.fixture
def clock() -> Mock:
    """Controllable time source starting at t=1000s."""
    return Mock(return_value=1000.0)


@pytest.fixture(autouse=True)
def fresh_limiter(monkeypatch: pytest.MonkeyPatch, clock: Mock) -> InMemoryFixedWindowRateLimiter:
    """Give every test its own process-wide limiter driven by ``clock``."""
    limiter = InMemoryFixedWindowRateLimiter(clock=clock)
    monkeypatch.setattr(rate_limit, "_limiter", limiter)
    return limiter
