"""
FastAPI application factory with middleware, CORS, and request tracing.
"""

import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from growt import __version__
from growt.config import get_settings
from growt.engine.normalizer import ReadingValidationError
from growt.routers import dashboard, devices, iot, livestock, logs, public, system
from growt.storage import StorageError
from growt.utils.logging import configure_logging, get_logger

# Configure logging at module level
configure_logging()
logger = get_logger(__name__)


def _request_id() -> str:
    return structlog.contextvars.get_contextvars().get("request_id", "")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    settings = get_settings()

    logger.info(
        "application_startup",
        version=app.version,
        dev_mode=settings.dev_mode,
        reporting_timezone=settings.reporting_timezone,
    )

    Path(settings.db_path).parent.mkdir(parents=True, exist_ok=True)

    yield

    logger.info("application_shutdown")


def create_app() -> FastAPI:
    """
    Application factory.
    Creates and configures FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="GROWT API",
        description="Livestock weighing analytics: growth status, monthly KPIs and herd health",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    @app.middleware("http")
    async def request_tracing_middleware(request: Request, call_next):
        """Add request ID and timing to all requests."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
            )

            return response
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": "Internal server error",
                    "request_id": request_id,
                },
                headers={"X-Request-ID": request_id},
            )

    @app.exception_handler(ReadingValidationError)
    async def reading_validation_handler(request: Request, exc: ReadingValidationError):
        """A malformed stored row fails the whole request."""
        logger.error("reading_batch_invalid", path=request.url.path, issues=len(exc.issues))
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "invalid_reading_batch",
                "issues": exc.issues,
                "request_id": _request_id(),
            },
        )

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error("storage_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "storage_error",
                "request_id": _request_id(),
            },
        )

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        return {
            "status": "healthy",
            "version": app.version,
        }

    app.include_router(logs.router, prefix="/api/v1/logs", tags=["Logs"])
    app.include_router(livestock.router, prefix="/api/v1/livestock", tags=["Livestock"])
    app.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["Dashboard"])
    app.include_router(public.router, prefix="/api/v1/public", tags=["Public"])
    app.include_router(iot.router, prefix="/api/v1/iot", tags=["IoT"])
    app.include_router(devices.router, prefix="/api/v1/devices", tags=["Devices"])
    app.include_router(system.router, prefix="/api/v1/system", tags=["System"])

    logger.info("application_configured", routers_count=7)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "growt.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
