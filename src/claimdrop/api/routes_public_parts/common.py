from __future__ import annotations

from typing import Optional

from fastapi import Request

from claimdrop.api.errors import ApiError
from claimdrop.runtime.claim_controller import ClaimContext, ClaimController

CALLER_HEADER = "X-Claim-Account"
ORIGIN_HEADER = "X-Claim-Origin"


def _drop(request: Request) -> ClaimController:
    drop = getattr(request.app.state, "drop", None)
    if drop is None:
        raise ApiError.internal("not_ready", "drop not attached to app.state", {})
    return drop


def _claim_context(request: Request) -> ClaimContext:
    """Caller identity comes from the invocation context, never the body.

    A request carrying an origin header different from the caller was
    relayed on the origin's behalf.
    """
    caller = (request.headers.get(CALLER_HEADER) or "").strip()
    if not caller:
        raise ApiError.bad_request("caller_required", f"missing {CALLER_HEADER} header", {})
    origin: Optional[str] = (request.headers.get(ORIGIN_HEADER) or "").strip() or None
    return ClaimContext(caller=caller, origin=origin)
