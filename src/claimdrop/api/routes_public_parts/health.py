from __future__ import annotations

import time

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def v1_health(request: Request):
    drop = getattr(request.app.state, "drop", None)
    return {"ok": True, "ready": drop is not None, "ts_ms": int(time.time() * 1000)}
