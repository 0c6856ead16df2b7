from __future__ import annotations

import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from claimdrop.api.errors import ApiError
from claimdrop.api.routes_public import public_router
from claimdrop.runtime.claim_controller import ClaimController, build_drop
from claimdrop.runtime.drop_config import load_drop_config
from claimdrop.runtime.errors import ClaimError
from claimdrop.structured_logging import configure_structured_logging


def build_runtime_drop() -> ClaimController:
    """Build the drop from environment config.

    Tests monkeypatch `claimdrop.api.app.build_runtime_drop` to inject a
    drop with a fixed clock.
    """
    cfg = load_drop_config()
    configure_structured_logging(cfg.log_level)
    return build_drop(cfg)


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load config and attach the drop to app.state.drop
      - False: no drop attached; routes that need it answer 500 not_ready
    """
    env = os.environ.get("CLAIMDROP_ENV", "prod").strip().lower()

    # No interactive docs in production.
    if env == "prod":
        app = FastAPI(title="Claimdrop API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Claimdrop API")

    app.state.drop = build_runtime_drop() if boot_runtime else None

    @app.exception_handler(ApiError)
    async def _api_error(_request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_json())

    @app.exception_handler(ClaimError)
    async def _claim_error(_request: Request, exc: ClaimError) -> JSONResponse:
        err = ApiError.from_claim_error(exc)
        return JSONResponse(status_code=err.status_code, content=err.to_json())

    app.include_router(public_router)
    return app
