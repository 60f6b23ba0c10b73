"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from app.core.logging import JsonFormatter, RequestIdFilter, SensitiveDataFilter, clear_request_id, set_request_id


@pytest.fixture
def log_stream() -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_client_addresses(log_stream) -> None:
    logger, stream = log_stream

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "client_ip": "203.0.113.9",
            "X-Forwarded-For": "198.51.100.7",
            "scope": "time",
        },
    )

    output = stream.getvalue()
    assert "203.0.113.9" not in output
    assert "198.51.100.7" not in output
    assert "[REDACTED]" in output
    assert "time" in output


def test_sensitive_filter_allows_guard_fields(log_stream) -> None:
    logger, stream = log_stream

    logger.warning(
        "origin.rejected",
        extra={
            "declared_origin": "https://evil.com",
            "request_host": "api.example.com",
            "reason": "not_allowed",
        },
    )

    record = json.loads(stream.getvalue())
    assert record["message"] == "origin.rejected"
    assert record["declared_origin"] == "https://evil.com"
    assert record["reason"] == "not_allowed"
    assert "[REDACTED]" not in stream.getvalue()


def test_sensitive_filter_redacts_nested_headers(log_stream) -> None:
    logger, stream = log_stream

    logger.info(
        "request.headers",
        extra={
            "headers": {
                "Cookie": "session=abc123",
                "user-agent": "pytest",
            },
        },
    )

    output = stream.getvalue()
    assert "abc123" not in output
    assert "pytest" in output


def test_request_id_is_attached_from_context(log_stream) -> None:
    logger, stream = log_stream

    set_request_id("req-42")
    try:
        logger.info("request.completed", extra={"status": 200})
    finally:
        clear_request_id()

    record = json.loads(stream.getvalue())
    assert record["request_id"] == "req-42"
    assert record["status"] == 200
