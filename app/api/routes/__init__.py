from __future__ import annotations

from app.api.routes.guarded import router as guarded_router
from app.api.routes.health import router as health_router

__all__ = ["guarded_router", "health_router"]
