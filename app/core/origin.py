"""Origin/referrer validation for guarded routes.

A guarded request must declare where it comes from (``Referer`` or
``Origin`` header). The declared URL's authority (``host[:port]``) must match
one of the configured origins or the request's own host, so pages served by
this API (e.g. the interactive docs) can always call it.

Configured origins are parsed once when the app is created; a malformed entry
fails startup with ConfigurationAppError instead of failing requests later.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence
from urllib.parse import urlsplit

from fastapi import Request

from app.core.config import settings
from app.core.errors import ConfigurationAppError, InvalidOriginError

logger = logging.getLogger(__name__)

DEFAULT_PORTS: dict[str, int] = {
    "http": 80,
    "https": 443,
    "ws": 80,
    "wss": 443,
}


def parse_origin_list(value: str | None) -> list[str]:
    """Split a comma-separated origin setting into trimmed, non-empty entries.

    Examples:
        >>> parse_origin_list("https://a.example.com, http://localhost:3000")
        ['https://a.example.com', 'http://localhost:3000']
        >>> parse_origin_list(None)
        []
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def extract_authority(url: str) -> str:
    """Return the ``host[:port]`` of an absolute URL.

    The hostname is lowercased, IPv6 hosts keep their brackets, and the port
    is dropped when it is the scheme's default.

    Args:
        url: Absolute URL such as ``https://app.example.com/page``.

    Returns:
        Authority string, e.g. ``app.example.com`` or ``localhost:3000``.

    Raises:
        ValueError: If the URL is not absolute or its host/port is malformed.
    """
    url = url.strip()
    parts = urlsplit(url)
    if parts.scheme.lower() in DEFAULT_PORTS and "\\" in parts.netloc:
        # Backslash ends the authority in http(s) and ws(s) URLs, as in browsers
        parts = urlsplit(url.replace("\\", "/"))
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"not an absolute URL: {url!r}")

    host = parts.hostname
    if not host:
        raise ValueError(f"URL has no host: {url!r}")

    # Raises ValueError for non-numeric or out-of-range ports
    port = parts.port

    if ":" in host:
        host = f"[{host}]"
    if port is None or port == DEFAULT_PORTS.get(parts.scheme.lower()):
        return host
    return f"{host}:{port}"


def build_allowed_origins(configured_origins: Iterable[str]) -> tuple[str, ...]:
    """Convert configured origin URLs to authorities, preserving order.

    Raises:
        ConfigurationAppError: If any entry is not a well-formed URL.
    """
    authorities: list[str] = []
    for origin in configured_origins:
        try:
            authority = extract_authority(origin)
        except ValueError as exc:
            logger.error(
                "origin.config_invalid",
                extra={"configured_origin": origin, "reason": str(exc)},
            )
            raise ConfigurationAppError(
                code="invalid_origin_config",
                message=f"Configured origin is not a valid URL: {origin!r}",
                details={"origin": origin, "hint": "Fix APP_CORS_ORIGIN"},
            ) from exc
        if authority not in authorities:
            authorities.append(authority)
    return tuple(authorities)


def _is_allowed(declared_origin: str | None, allowed: Sequence[str]) -> bool:
    if declared_origin is None or not declared_origin.strip():
        return False
    try:
        declared_authority = extract_authority(declared_origin)
    except ValueError:
        return False
    return declared_authority in allowed


def validate_origin(
    declared_origin: str | None,
    request_host: str,
    configured_origins: Sequence[str],
) -> bool:
    """Check a declared origin against the configured origins plus the request host.

    Args:
        declared_origin: Referer/Origin header value, or None when absent.
        request_host: The request's own Host value (always allowed).
        configured_origins: Allowed origin URLs.

    Returns:
        True when the declared authority exactly matches an allowed entry.

    Raises:
        ConfigurationAppError: If a configured origin is not a well-formed URL.
    """
    allowed = build_allowed_origins(configured_origins) + (request_host,)
    return _is_allowed(declared_origin, allowed)


class OriginValidator:
    """Origin check with the configured allow-list parsed up front."""

    def __init__(self, configured_origins: Sequence[str]) -> None:
        self.configured_origins = tuple(configured_origins)
        self.allowed_origins = build_allowed_origins(self.configured_origins)

    def __repr__(self) -> str:
        return f"OriginValidator(allowed_origins={self.allowed_origins!r})"

    def effective_origins(self, request_host: str) -> tuple[str, ...]:
        """Allowed authorities for a request served under ``request_host``."""
        return self.allowed_origins + (request_host,)

    def validate(self, declared_origin: str | None, request_host: str) -> bool:
        """Same decision as validate_origin, without re-parsing configuration."""
        return _is_allowed(declared_origin, self.effective_origins(request_host))


_validator: OriginValidator | None = None
_validator_config: str | None = None


def get_origin_validator() -> OriginValidator:
    """Return the process-wide validator, rebuilt if APP_CORS_ORIGIN changed.

    Raises:
        ConfigurationAppError: If the configured origins are malformed.
    """

    global _validator, _validator_config

    config = settings.app.cors_origin or ""
    if _validator is None or _validator_config != config:
        _validator = OriginValidator(parse_origin_list(config))
        _validator_config = config
    return _validator


def get_declared_origin(request: Request) -> str | None:
    """First non-blank value among the configured origin headers."""
    for header in parse_origin_list(settings.app.origin_headers):
        value = request.headers.get(header)
        if value and value.strip():
            return value
    return None


def get_request_host(request: Request) -> str:
    """Host the request was addressed to (Host header, else the URL netloc)."""
    return request.headers.get("host") or request.url.netloc


def enforce_valid_origin(request: Request) -> None:
    """FastAPI dependency rejecting requests from origins that are not allowed.

    Raises:
        InvalidOriginError: When the declared origin is absent or not allowed.
    """

    if not settings.app.origin_check_enabled:
        return

    declared_origin = get_declared_origin(request)
    request_host = get_request_host(request)

    if get_origin_validator().validate(declared_origin, request_host):
        return

    logger.warning(
        "origin.rejected",
        extra={
            "declared_origin": declared_origin,
            "request_host": request_host,
            "reason": "missing" if declared_origin is None else "not_allowed",
        },
    )
    raise InvalidOriginError(
        code="invalid_origin",
        message="Invalid header.",
        details={"origin": declared_origin or ""},
    )
