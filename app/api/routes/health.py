from __future__ import annotations

from fastapi import APIRouter

from app.core.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness check, never guarded.

    Also reports which guards are switched on, so a misconfigured deployment
    is visible from the outside.
    """

    return {
        "status": "ok",
        "origin_check_enabled": settings.app.origin_check_enabled,
        "rate_limit_enabled": settings.app.rate_limit_enabled,
    }
