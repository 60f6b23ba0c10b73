"""OpenAPI metadata for guarded routes.

Provides:
- Response descriptions for the ``417`` and ``429`` plain-text rejections,
  attached by routes through ``responses=GUARD_RESPONSES``
- A helper adding tags metadata to the generated schema
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

ORIGIN_REJECTED_RESPONSE: Dict[str, Any] = {
    "description": "Referer/Origin header missing or not an allowed origin.",
    "content": {"text/plain": {"schema": {"type": "string", "example": "Invalid header."}}},
}

RATE_LIMITED_RESPONSE: Dict[str, Any] = {
    "description": "Too many requests from this client for the route's scope.",
    "content": {
        "text/plain": {
            "schema": {
                "type": "string",
                "example": "Request is exceeded. Try again in 1 seconds.",
            }
        }
    },
    "headers": {
        "Retry-After": {"schema": {"type": "integer"}},
        "X-RateLimit-Limit": {"schema": {"type": "integer"}},
        "X-RateLimit-Remaining": {"schema": {"type": "integer"}},
        "X-RateLimit-Reset": {"schema": {"type": "integer"}},
    },
}

# For routes running both the origin check and a RequestLimit
GUARD_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    417: ORIGIN_REJECTED_RESPONSE,
    429: RATE_LIMITED_RESPONSE,
}


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags metadata."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        desired_tags = [
            {
                "name": "Guarded",
                "description": "Endpoints behind the origin check and per-client rate limit.",
            },
            {
                "name": "Health",
                "description": "Liveness checks.",
            },
        ]
        for tag in desired_tags:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
