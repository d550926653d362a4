import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from shortlink_app.api.v1 import analytics, redirect, shorten
from shortlink_app.cache.factory import CacheBackend, CacheFactory
from shortlink_app.clicks.recorder import ClickRecorder
from shortlink_app.config import Settings, get_settings
from shortlink_app.database.connection import Database
from shortlink_app.exceptions import (
    AliasExistsError,
    StorageError,
    URLNotFoundError,
    ValidationError,
)
from shortlink_app.logging_config import configure_logging
from shortlink_app.services.url_service import ShortenerService
from shortlink_app.storage.strategies import SQLURLStorage

logger = logging.getLogger("shortlink_app")


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "invalid json"
    ctx_error = (first.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    return first.get("msg", "invalid request")


def register_exception_handlers(app: FastAPI) -> None:
    """Every error body is {"error": message}."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(AliasExistsError)
    async def alias_exists_handler(request: Request, exc: AliasExistsError):
        return _error(status.HTTP_400_BAD_REQUEST, "alias already exists")

    @app.exception_handler(URLNotFoundError)
    async def not_found_handler(request: Request, exc: URLNotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, "url not found")

    @app.exception_handler(StorageError)
    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, exc: Exception):
        logger.error(
            "Storage failure",
            exc_info=exc,
            extra={"path": request.url.path, "method": request.method},
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal server error")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Shared handles (database, cache, service, click recorder) are created in
    the lifespan handler and stored on `app.state`.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level, settings.log_format)
        logger.info(
            "Starting application",
            extra={"app_name": settings.app_name, "environment": settings.environment},
        )

        database = Database.from_settings(settings)
        database.create_all()

        cache = CacheFactory.create(CacheBackend(settings.cache_backend), settings)
        url_service = ShortenerService(
            storage=SQLURLStorage(database),
            cache=cache,
            populate_cache_on_miss=settings.cache_populate_on_miss,
            cache_ttl=settings.cache_ttl,
            alias_length=settings.alias_length,
        )
        click_recorder = ClickRecorder(
            handler=url_service.record_click,
            workers=settings.click_workers,
            maxsize=settings.click_queue_size,
        )
        click_recorder.start()

        app.state.database = database
        app.state.cache = cache
        app.state.url_service = url_service
        app.state.click_recorder = click_recorder

        yield

        logger.info("Shutting down application")
        await click_recorder.stop(timeout=settings.click_drain_timeout)
        database.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="A URL shortener with click analytics built with FastAPI",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_exception_handlers(app)

    @app.middleware("http")
    async def enforce_timeout(request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), timeout=settings.server_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Request timed out",
                extra={"method": request.method, "path": request.url.path},
            )
            return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "request timeout")

    # Registered last so it wraps the timeout middleware
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time = time.perf_counter() - start_time

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "%s %s %s",
            request.method,
            request.url.path,
            response.status_code,
            extra={
                "request_id": request_id,
                "duration_ms": round(process_time * 1000, 2),
            },
        )
        return response

    @app.get("/")
    def read_root():
        """Root endpoint with API information"""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "docs": "/docs",
        }

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "environment": settings.environment}

    ######## Include routers
    app.include_router(shorten.router)
    app.include_router(redirect.router)
    app.include_router(analytics.router)

    return app


app = create_app()


if __name__ == "__main__":
    settings = app.state.settings
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        timeout_keep_alive=settings.server_idle_timeout,
        log_config=None,
    )
