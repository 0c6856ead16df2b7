from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from claimdrop.api.errors import ApiError
from claimdrop.runtime.metrics import format_prometheus, metrics_enabled

router = APIRouter()


@router.get("/metrics", response_class=PlainTextResponse)
def v1_metrics():
    if not metrics_enabled():
        raise ApiError.not_found("metrics_disabled", "metrics are disabled", {})
    return PlainTextResponse(format_prometheus(), media_type="text/plain; version=0.0.4")
