"""Unit tests for origin/referrer validation."""

import pytest

from app.core.errors import ConfigurationAppError
from app.core.origin import (
    OriginValidator,
    build_allowed_origins,
    extract_authority,
    parse_origin_list,
    validate_origin,
)


class TestExtractAuthority:
    """Authority extraction from absolute URLs."""

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://app.example.com", "app.example.com"),
            ("https://app.example.com/some/page?q=1#top", "app.example.com"),
            ("http://localhost:3000/docs", "localhost:3000"),
            ("https://app.example.com:443/", "app.example.com"),
            ("http://app.example.com:80", "app.example.com"),
            ("https://app.example.com:8443", "app.example.com:8443"),
            ("http://user:pw@app.example.com:8080/x", "app.example.com:8080"),
            ("http://[::1]:8000/", "[::1]:8000"),
            ("https://APP.Example.com", "app.example.com"),
            ("http://evil.com\\@app.example.com/", "evil.com"),
            ("https://app.example.com\\path", "app.example.com"),
        ],
    )
    def test_extracts_host_and_non_default_port(self, url: str, expected: str) -> None:
        assert extract_authority(url) == expected

    @pytest.mark.parametrize(
        "url",
        [
            "app.example.com",
            "/relative/path",
            "not a url",
            "https://",
            "http://app.example.com:notaport",
            "http://app.example.com:99999",
            "http://[::1",
        ],
    )
    def test_rejects_malformed_urls(self, url: str) -> None:
        with pytest.raises(ValueError):
            extract_authority(url)


class TestParseOriginList:
    def test_splits_and_trims(self) -> None:
        assert parse_origin_list(" https://a.com , ,http://b.com:81 ") == [
            "https://a.com",
            "http://b.com:81",
        ]

    @pytest.mark.parametrize("value", [None, "", "  ,  "])
    def test_absent_config_is_empty(self, value: str | None) -> None:
        assert parse_origin_list(value) == []


class TestValidateOrigin:
    """Decision table for validate_origin."""

    def test_configured_origin_is_allowed(self) -> None:
        assert validate_origin(
            "https://app.example.com",
            "api.example.com",
            ["https://app.example.com"],
        ) is True

    def test_referer_with_path_is_allowed(self) -> None:
        assert validate_origin(
            "https://app.example.com/dashboard?tab=2",
            "api.example.com",
            ["https://app.example.com"],
        ) is True

    @pytest.mark.parametrize("declared", [None, "", "   ", "\t\n"])
    def test_missing_origin_is_rejected(self, declared: str | None) -> None:
        assert validate_origin(declared, "api.example.com", ["https://app.example.com"]) is False
        assert validate_origin(declared, "api.example.com", []) is False

    def test_self_origin_is_allowed_without_configuration(self) -> None:
        assert validate_origin("https://api.example.com/docs", "api.example.com", []) is True

    def test_self_origin_with_port(self) -> None:
        assert validate_origin("http://localhost:8000/docs", "localhost:8000", []) is True

    def test_foreign_origin_is_rejected(self) -> None:
        assert validate_origin(
            "https://evil.com",
            "api.example.com",
            ["https://app.example.com"],
        ) is False

    def test_port_must_match(self) -> None:
        assert validate_origin(
            "http://localhost:3001",
            "api.example.com",
            ["http://localhost:3000"],
        ) is False

    def test_subdomain_is_not_a_match(self) -> None:
        assert validate_origin(
            "https://evil.app.example.com",
            "api.example.com",
            ["https://app.example.com"],
        ) is False

    def test_request_host_comparison_is_case_sensitive(self) -> None:
        assert validate_origin("https://api.example.com", "API.example.com", []) is False

    def test_backslash_ends_the_authority(self) -> None:
        assert validate_origin(
            "http://evil.com\\@app.example.com",
            "api.example.com",
            ["https://app.example.com"],
        ) is False

    def test_unparseable_declared_origin_is_rejected(self) -> None:
        assert validate_origin("app.example.com", "api.example.com", ["https://app.example.com"]) is False
        assert validate_origin("http://[::1", "api.example.com", []) is False

    def test_malformed_configured_origin_raises(self) -> None:
        with pytest.raises(ConfigurationAppError) as exc_info:
            validate_origin(
                "https://app.example.com",
                "api.example.com",
                ["https://app.example.com", "app.example.org"],
            )

        assert exc_info.value.code == "invalid_origin_config"
        assert "app.example.org" in exc_info.value.message


class TestOriginValidator:
    def test_parses_configuration_once(self) -> None:
        validator = OriginValidator(["https://app.example.com", "http://localhost:3000/"])

        assert validator.allowed_origins == ("app.example.com", "localhost:3000")
        assert validator.effective_origins("api.example.com") == (
            "app.example.com",
            "localhost:3000",
            "api.example.com",
        )

    def test_matches_validate_origin(self) -> None:
        configured = ["https://app.example.com"]
        validator = OriginValidator(configured)

        for declared in ["https://app.example.com", "https://evil.com", None, "https://api.example.com"]:
            assert validator.validate(declared, "api.example.com") == validate_origin(
                declared, "api.example.com", configured
            )

    def test_malformed_configuration_fails_at_construction(self) -> None:
        with pytest.raises(ConfigurationAppError):
            OriginValidator(["localhost:3000"])

    def test_duplicate_authorities_are_collapsed(self) -> None:
        assert build_allowed_origins(
            ["https://app.example.com", "https://app.example.com:443/login"]
        ) == ("app.example.com",)
