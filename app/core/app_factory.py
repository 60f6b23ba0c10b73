"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build a fresh app per configuration.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.routes import guarded_router, health_router
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.origin import get_origin_validator

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.

    Raises:
        ConfigurationAppError: If APP_CORS_ORIGIN holds a malformed URL.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    # Parse the allow-list now so a bad entry stops startup, not a request
    validator = get_origin_validator()
    logger.info(
        "app.guards_configured",
        extra={
            "allowed_origins": list(validator.allowed_origins),
            "origin_check_enabled": settings.app.origin_check_enabled,
            "rate_limit_enabled": settings.app.rate_limit_enabled,
        },
    )

    app = FastAPI(
        title="Request Guard API",
        description=(
            "Sample API whose routes are gated by a Referer/Origin allow-list "
            "check (417 on failure) and a per-client fixed-window rate limit "
            "(429 on failure)."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(guarded_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
