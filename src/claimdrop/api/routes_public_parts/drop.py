from __future__ import annotations

from fastapi import APIRouter, Request

from claimdrop.api.routes_public_parts.common import _drop
from claimdrop.api.schemas import DropInfo

router = APIRouter()


@router.get("/drop", response_model=DropInfo, response_model_exclude_none=True)
def v1_drop(request: Request):
    return _drop(request).describe()
