from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.openapi import GUARD_RESPONSES
from app.core.origin import enforce_valid_origin
from app.core.rate_limit import RequestLimit

router = APIRouter(tags=["Guarded"])

# Origin check runs before the limiter so rejected origins don't spend budget
time_limit = RequestLimit(
    "time",
    max_requests=settings.app.time_rate_limit_requests,
    seconds=settings.app.time_rate_limit_window_seconds,
)


@router.get(
    "/time",
    dependencies=[Depends(enforce_valid_origin), Depends(time_limit)],
    responses=GUARD_RESPONSES,
)
def get_server_time() -> dict:
    """Return the current server time in UTC.

    Guarded by the origin check and a per-client limit (scope ``time``).
    """

    now = datetime.now(timezone.utc)
    return {"utc": now.isoformat(), "epoch": int(now.timestamp())}
