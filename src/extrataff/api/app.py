from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from extrataff.api.routes import router as api_router
from extrataff.config import get_settings
from extrataff.core.errors import (
    DuplicateApplication,
    IneligibleMission,
    InvalidStateTransition,
    MarketplaceError,
    MissingAddress,
    MissingEstablishmentProfile,
    NotFound,
    PaymentSessionFailure,
)
from extrataff.db.init import init_database
from extrataff.logging_config import configure_logging

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[MarketplaceError], int]] = [
    (NotFound, 404),
    (MissingEstablishmentProfile, 404),
    (MissingAddress, 422),
    (DuplicateApplication, 409),
    (IneligibleMission, 409),
    (InvalidStateTransition, 409),
    (PaymentSessionFailure, 502),
]


def status_for(exc: MarketplaceError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging()

    app = FastAPI(title=settings.app_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def _startup() -> None:
        init_database()

    @app.exception_handler(MarketplaceError)
    async def _marketplace_error(_request: Request, exc: MarketplaceError) -> JSONResponse:
        status_code = status_for(exc)
        logger.info("Rejected request with %s: %s", exc.__class__.__name__, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc), "error": exc.__class__.__name__})

    @app.exception_handler(ValueError)
    async def _value_error(_request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc), "error": "ValueError"})

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(api_router)
    return app
