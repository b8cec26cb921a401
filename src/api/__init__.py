"""
REST API Layer for the Social Battery.

Provides:
- FastAPI application with CORS middleware
- Envelope-shaped exception handlers for every error path (see src/lib/errors.py)
- Lifespan that loads the stored snapshot and runs the recovery scheduler
- API versioning under /api/v1 prefix
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.routes import router
from src.api.schemas import error_response
from src.config.battery import BatterySettings
from src.lib.errors import (
    INTERNAL_ERROR,
    METHOD_NOT_ALLOWED,
    NOT_FOUND,
    VALIDATION_ERROR,
    code_for_exception,
    status_for,
)
from src.lib.exceptions import SocialBatteryException, ValidationError
from src.services.assistant import SocialBatteryAssistant
from src.services.persistence import SnapshotRepository, create_blob_store
from src.services.recovery_scheduler import RecoveryScheduler
from src.services.state_store import SocialBatteryStore
from src.services.text_generator import create_text_generator

logger = logging.getLogger(__name__)

_ALLOWED_HEADERS: list[str] = [
    "Content-Type",
    "Accept",
    "Accept-Language",
    "X-Request-ID",
]

_HTTP_ERROR_CODES: dict[int, str] = {
    404: NOT_FOUND,
    405: METHOD_NOT_ALLOWED,
    422: VALIDATION_ERROR,
}


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    store: SocialBatteryStore = app.state.store
    scheduler: RecoveryScheduler = app.state.scheduler
    await store.load()
    scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()
        await store.close()


def create_app(
    settings: BatterySettings | None = None,
    store: SocialBatteryStore | None = None,
    assistant: SocialBatteryAssistant | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Runtime settings (read from the environment if None)
        store: Pre-built store (built from settings if None)
        assistant: Pre-built assistant (built from settings if None)

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or BatterySettings.from_env()
    store = store or SocialBatteryStore(
        SnapshotRepository(create_blob_store(settings)),
        settings=settings,
    )
    assistant = assistant or SocialBatteryAssistant(store, create_text_generator(settings))

    app = FastAPI(
        title="Social Battery",
        description="Social energy tracking: drain, recovery, patterns and recommendations",
        version="0.1.0",
        lifespan=_lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.assistant = assistant
    app.state.scheduler = RecoveryScheduler(store, interval_minutes=settings.tick_minutes)

    # -------------------------------------------------------------------------
    # Exception handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", ())[1:]), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=error_response(VALIDATION_ERROR, details={"errors": errors}),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException,
    ) -> JSONResponse:
        code = _HTTP_ERROR_CODES.get(exc.status_code, INTERNAL_ERROR)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(SocialBatteryException)
    async def domain_exception_handler(
        request: Request, exc: SocialBatteryException,
    ) -> JSONResponse:
        code = code_for_exception(exc)
        if isinstance(exc, ValidationError):
            content = error_response(code, str(exc), {"field": exc.field})
        else:
            logger.error(
                "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc,
            )
            content = error_response(code)
        return JSONResponse(status_code=status_for(code), content=content)

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception,
    ) -> JSONResponse:
        logger.exception(
            "Unhandled exception on %s %s", request.method, request.url.path,
        )
        return JSONResponse(status_code=500, content=error_response(INTERNAL_ERROR))

    # -------------------------------------------------------------------------
    # CORS Middleware (SOCIAL_BATTERY_CORS_ORIGINS, empty by default)
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=_ALLOWED_HEADERS,
    )
    if settings.cors_origins:
        logger.info("CORS enabled for origins: %s", settings.cors_origins)

    app.include_router(router)

    # Root-level health check for infrastructure probes
    @app.get("/health")
    async def root_health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


__all__ = ["create_app", "router"]
