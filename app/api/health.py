# app/api/health.py
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text

from app.db import session as db_session
from app.services.reference_cache import ReferenceCache, get_reference_cache

router = APIRouter(tags=["health"])

APP_STARTED_AT = time.time()


def _now_meta() -> Dict[str, Any]:
    now_ts = time.time()
    now_dt = datetime.fromtimestamp(now_ts, tz=timezone.utc)
    return {
        "now_unix": int(now_ts),
        "now_iso": now_dt.isoformat().replace("+00:00", "Z"),
        "uptime_s": int(now_ts - APP_STARTED_AT),
    }


async def _check_db() -> Dict[str, Any]:
    t0 = time.time()
    try:
        async with db_session.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"ok": True, "latency_ms": int((time.time() - t0) * 1000)}
    except Exception as e:
        return {
            "ok": False,
            "latency_ms": int((time.time() - t0) * 1000),
            "error": str(e),
        }


@router.get("/live")
async def live():
    return {"status": "ok"}


@router.get("/ready")
async def ready(
    response: Response,
    cache: ReferenceCache = Depends(get_reference_cache),
):
    db_check = await _check_db()

    # an empty reference cache is normal before the first search; informational only
    payload: Dict[str, Any] = {
        "status": "ok",
        **_now_meta(),
        "checks": {
            "db": db_check,
            "reference_cache": cache.status(),
        },
    }

    if not db_check["ok"]:
        payload["status"] = "degraded"
        payload["degraded_reasons"] = ["db_unhealthy"]
        response.status_code = 503
    return payload
