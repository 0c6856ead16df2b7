from __future__ import annotations

from fastapi import APIRouter, Request

from claimdrop.api.routes_public_parts.common import _claim_context, _drop
from claimdrop.api.schemas import ClaimQuoteResult, ClaimResult

router = APIRouter()


@router.post("/claim", response_model=ClaimResult)
def v1_claim(request: Request):
    """Claim for the calling account.

    Returns { ok, account, amount, quotient, issued_total, claimed, time }.
    claimed=false with amount "0" means the claim was a no-op and may be retried.
    """
    drop = _drop(request)
    receipt = drop.claim(_claim_context(request))
    return ClaimResult(**receipt.to_json())


@router.get("/claim/quote", response_model=ClaimQuoteResult)
def v1_claim_quote(request: Request):
    drop = _drop(request)
    return ClaimQuoteResult(**drop.quote(_claim_context(request)).to_json())
