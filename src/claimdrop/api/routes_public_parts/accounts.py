from __future__ import annotations

from fastapi import APIRouter, Request

from claimdrop.api.routes_public_parts.common import _drop
from claimdrop.api.schemas import AccountInfo

router = APIRouter()


@router.get("/accounts/{account}", response_model=AccountInfo)
def v1_account_get(account: str, request: Request):
    drop = _drop(request)
    return AccountInfo(
        account=account,
        balance=str(drop.balance_of(account)),
        claimed=drop.has_claimed(account),
    )
