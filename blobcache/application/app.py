"""
FastAPI Application Entry Point

Admin HTTP surface for one blobcache engine. It configures logging, the
cache engine and its cleanup scheduler, middleware, and routes.

Run:
    uvicorn blobcache.application.app:create_app --factory
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from blobcache.application.api.routes.cache import router as cache_router
from blobcache.application.api.routes.health import router as health_router
from blobcache.application.factory import create_cache, create_cleanup_scheduler
from blobcache.core.config.constants import API_PREFIX, HEADER_CORRELATION_ID, Stage
from blobcache.core.config.settings import get_settings
from blobcache.core.exceptions import BlobCacheError
from blobcache.core.logging.logger import (
    clear_correlation_id,
    get_logger,
    log_stage,
    set_correlation_id,
    setup_logging,
)
from blobcache.infrastructure.cache.cache_manager import CacheManager

logger = get_logger(__name__)


# ============================================================================
# Application Factory
# ============================================================================


def create_app(cache: CacheManager | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        cache: Engine to serve. When None, the lifespan builds one from the
            CACHE_* settings and owns it.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)
        log_stage(
            logger,
            Stage.API,
            "Starting cache admin API",
            version=settings.app.APP_VERSION,
        )

        owned = cache is None
        engine = create_cache(settings.to_cache_config(), base_dir=settings.CACHE_BASE_DIR) if owned else cache
        scheduler = create_cleanup_scheduler(engine)

        app.state.cache = engine
        app.state.scheduler = scheduler
        if scheduler is not None:
            await scheduler.start()

        try:
            yield
        finally:
            log_stage(logger, Stage.API, "Shutting down cache admin API")
            if scheduler is not None:
                await scheduler.stop()
            if owned:
                await engine.shutdown()
            log_stage(logger, Stage.API, "Application shutdown complete")

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Admin API for a persistent key-value cache",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Set eagerly so routes work even when the lifespan is not run
    app.state.cache = cache
    app.state.scheduler = None

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        """Inject a correlation ID into all requests for log correlation."""
        correlation_id = request.headers.get(HEADER_CORRELATION_ID) or str(uuid.uuid4())
        set_correlation_id(correlation_id)
        try:
            response = await call_next(request)
            response.headers[HEADER_CORRELATION_ID] = correlation_id
            return response
        finally:
            clear_correlation_id()

    @app.exception_handler(BlobCacheError)
    async def blobcache_exception_handler(request: Request, exc: BlobCacheError):
        log_stage(
            logger,
            Stage.API,
            f"Cache error: {exc.message}",
            level="error",
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return JSONResponse(status_code=500, content=exc.to_dict())

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "docs": "/docs",
            "health": f"{API_PREFIX}/health",
        }

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(cache_router, prefix=API_PREFIX)

    return app


# ============================================================================
# Main Entry Point
# ============================================================================

def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        create_app(),
        host=settings.app.API_HOST,
        port=settings.app.API_PORT,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
