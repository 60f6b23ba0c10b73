"""End-to-end tests for the assembled application."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from app.core import origin
from app.core.app_factory import create_app
from app.core.config import settings
from app.core.errors import ConfigurationAppError


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


def test_health_is_not_guarded(client: TestClient) -> None:
    for _ in range(3):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


def test_time_requires_allowed_origin(client: TestClient) -> None:
    response = client.get("/v1/time", headers={"Referer": "https://evil.com/"})

    assert response.status_code == 417
    assert response.text == "Invalid header."


def test_time_allows_configured_origin(client: TestClient) -> None:
    response = client.get("/v1/time", headers={"Referer": "https://app.example.com/"})

    assert response.status_code == 200
    assert {"utc", "epoch"} <= response.json().keys()


def test_time_is_limited_per_client(client: TestClient, clock: Mock) -> None:
    headers = {"Referer": "http://testserver/docs"}

    assert client.get("/v1/time", headers=headers).status_code == 200
    response = client.get("/v1/time", headers=headers)
    assert response.status_code == 429
    assert response.text == "Request is exceeded. Try again in 1 seconds."

    clock.return_value = 1001.0
    assert client.get("/v1/time", headers=headers).status_code == 200


def test_malformed_allow_list_fails_startup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings.app, "cors_origin", "https://app.example.com,localhost:3000")
    monkeypatch.setattr(origin, "_validator", None)

    with pytest.raises(ConfigurationAppError) as exc_info:
        create_app()

    assert exc_info.value.code == "invalid_origin_config"


def test_openapi_documents_guard_responses(client: TestClient) -> None:
    schema = client.get("/openapi.json").json()

    responses = schema["paths"]["/v1/time"]["get"]["responses"]
    assert "417" in responses
    assert "429" in responses
    assert "Retry-After" in responses["429"]["headers"]

    health_responses = schema["paths"]["/health"]["get"]["responses"]
    assert "417" not in health_responses
    assert "429" not in health_responses
    assert "text/plain" in responses["417"]["content"]


def test_openapi_lists_tags(client: TestClient) -> None:
    schema = client.get("/openapi.json").json()

    tag_names = {tag["name"] for tag in schema["tags"]}
    assert {"Guarded", "Health"} <= tag_names
