"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from loguru import logger
from starlette.responses import JSONResponse

from src.catalog_sync.api.http.app_data import build_application_dependencies
from src.catalog_sync.api.http.routers.catalog_users import router as catalog_users_router
from src.catalog_sync.api.http.routers.health import router as health_router
from src.catalog_sync.api.http.routers.sign_in import router as sign_in_router
from src.catalog_sync.api.utils.app_startup import configure_logging
from src.catalog_sync.core.errors import (
    CatalogSyncError,
    ConflictError,
    NotConverged,
    NotFoundError,
    PublishFailure,
    ResolutionError,
    SignInFailed,
)
from src.catalog_sync.runtime.context import get_config

configure_logging()

_STATUS_BY_ERROR: list[tuple[type[CatalogSyncError], int]] = [
    (ResolutionError, 401),
    (SignInFailed, 401),
    (NotFoundError, 404),
    (ConflictError, 409),
    (PublishFailure, 502),
    (NotConverged, 503),
]


def status_for(error: CatalogSyncError) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status_code
    return 500


# --- FastAPI app setup ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup(app)
    yield


async def startup(app: FastAPI) -> None:
    # tests may install their own dependencies before the app starts
    if getattr(app.state, "app_dependencies", None) is None:
        app.state.app_dependencies = build_application_dependencies(get_config())
    logger.info("Application startup complete")


app = FastAPI(
    lifespan=lifespan,
    docs_url=None if get_config().app.environment == "production" else "/docs",
    redoc_url=None if get_config().app.environment == "production" else "/redoc",
)

__all__ = ["app", "startup"]


@app.exception_handler(CatalogSyncError)
async def catalog_sync_error_handler(request: Request, exc: CatalogSyncError):
    status_code = status_for(exc)
    logger.bind(status_code=status_code, error_type=type(exc).__name__).warning(
        f"{request.method} {request.url.path} failed: {exc.message}"
    )
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# --- Request logging middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    start = time.perf_counter()

    with logger.contextualize(
        request_id=request_id, method=request.method, path=request.url.path
    ):
        logger.info("request.start")
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.bind(
            status_code=response.status_code,
            duration_ms=round(duration_ms, 1),
        ).info("request.end")
        response.headers.setdefault("X-Request-ID", request_id)
        return response


# --- Router registration ---
app.include_router(health_router)
app.include_router(catalog_users_router)
app.include_router(sign_in_router)
