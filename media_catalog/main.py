"""
Main FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from media_catalog.api import api_router
from media_catalog.catalog import FAMILIES, EntityFamily
from media_catalog.catalog.mapper import error_body
from media_catalog.core.config import settings
from media_catalog.core.exceptions import ValidationFailed
from media_catalog.core.logging import get_logger, setup_logging
from media_catalog.db.redis import close_redis, init_redis
from media_catalog.db.session import check_db_health, close_db, init_db

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan events.
    Handles startup and shutdown tasks.
    """
    # Startup
    logger.info(
        "starting_application",
        app_name=settings.APP_NAME,
        environment=settings.APP_ENV,
        version=settings.APP_VERSION,
        cache_enabled=settings.CACHE_ENABLED,
    )

    await init_db()
    if settings.CACHE_ENABLED:
        await init_redis()

    yield

    # Shutdown
    logger.info("shutting_down_application")

    await close_redis()
    await close_db()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Media catalog - movies, series, music, videos and video games",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)


# Health check endpoint
@app.get("/health", tags=["health"])
async def health_check() -> JSONResponse:
    """
    Health check endpoint for monitoring.
    Includes database connectivity check.
    """
    db_healthy = await check_db_health()

    return JSONResponse(
        status_code=200 if db_healthy else 503,
        content={
            "status": "healthy" if db_healthy else "unhealthy",
            "app_name": settings.APP_NAME,
            "environment": settings.APP_ENV,
            "version": settings.APP_VERSION,
            "database": "connected" if db_healthy else "disconnected",
        },
    )


@app.get("/metrics", tags=["health"])
async def metrics() -> Response:
    """Prometheus exposition of the catalog counters."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# Include API routers
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled errors.
    """
    logger.error(
        "unhandled_exception",
        error=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
            }
        },
    )



def family_for_path(path: str) -> Optional[EntityFamily]:
    """/v1/movies/... -> MOVIES; None outside the catalog routes."""
    if not path.startswith(settings.API_V1_PREFIX + "/"):
        return None
    name = path[len(settings.API_V1_PREFIX) + 1:].split("/", 1)[0]
    return FAMILIES.get(name)


def _catalog_bad_request(request: Request, exc: ValidationFailed) -> JSONResponse:
    family = family_for_path(request.url.path)
    if family is None:
        return JSONResponse(status_code=400, content={"detail": exc.message})
    return JSONResponse(status_code=400, content=error_body(family, exc.message, exc.media_id))


@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed) -> JSONResponse:
    """Validation raised outside a route body (sort parsing)."""
    logger.info("validation_failed", path=request.url.path, error=exc.message)
    return _catalog_bad_request(request, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Malformed path, query or body values.

    Catalog routes answer 400 with the DTO-shaped error body; everything else
    keeps FastAPI's 422.
    """
    if family_for_path(request.url.path) is None:
        return await request_validation_exception_handler(request, exc)

    errors = [(str(err["loc"][-1]) if err["loc"] else "request", err["msg"]) for err in exc.errors()]
    logger.info("request_validation_failed", path=request.url.path, errors=errors)
    return _catalog_bad_request(request, ValidationFailed(errors))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "media_catalog.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
