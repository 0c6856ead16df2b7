# src/claimdrop/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from claimdrop.api.routes_public_parts.accounts import router as accounts_router
from claimdrop.api.routes_public_parts.claim import router as claim_router
from claimdrop.api.routes_public_parts.drop import router as drop_router
from claimdrop.api.routes_public_parts.health import router as health_router
from claimdrop.api.routes_public_parts.metrics import router as metrics_router

public_router = APIRouter()

public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(drop_router, prefix="/v1", tags=["drop"])
public_router.include_router(accounts_router, prefix="/v1", tags=["accounts"])
public_router.include_router(claim_router, prefix="/v1", tags=["claim"])

# Ops
public_router.include_router(metrics_router, prefix="/v1", tags=["metrics"])
