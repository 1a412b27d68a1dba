"""
TranscodeFlow API - Main Application
"""
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI
from prometheus_client import make_asgi_app
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from api.config import settings
from api.routers import health, presets, submit
from api.services.metrics import MetricsClient, PrometheusMetricsService
from api.services.queue import QueueService
from api.utils.error_handlers import (
    TranscodeFlowError, transcodeflow_exception_handler,
    http_exception_handler, general_exception_handler,
)
from api.utils.logger import setup_logging

# Setup structured logging
setup_logging("server")
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info("Starting TranscodeFlow API", version=settings.VERSION)

    # A broker we cannot reach at startup is fatal
    await app.state.queue_service.initialize()

    logger.info(
        "Configuration loaded",
        api_host=settings.API_HOST,
        api_port=settings.API_PORT,
        redis_url=settings.REDIS_URL,
    )

    yield

    logger.info("Shutting down TranscodeFlow API")
    await app.state.queue_service.cleanup()


def create_app(
    queue_service: Optional[QueueService] = None,
    metrics: Optional[MetricsClient] = None,
) -> FastAPI:
    """Build the application around the given (or default) services."""
    app = FastAPI(
        title="TranscodeFlow API",
        description="Queue-backed FFmpeg transcoding job submission",
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.queue_service = queue_service or QueueService()
    app.state.metrics = metrics or PrometheusMetricsService()

    # Exception handlers
    app.add_exception_handler(TranscodeFlowError, transcodeflow_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Include routers
    app.include_router(submit.router, tags=["submit"])
    app.include_router(presets.router, tags=["presets"])
    app.include_router(health.router, tags=["health"])

    # Add Prometheus metrics endpoint
    registry = getattr(app.state.metrics, "registry", None)
    if settings.ENABLE_METRICS and registry is not None:
        app.mount("/metrics", make_asgi_app(registry=registry))

    @app.get("/", tags=["root"])
    async def root() -> Dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": "TranscodeFlow API",
            "version": settings.VERSION,
            "status": "operational",
            "submit": "/submit",
            "health": "/health",
            "documentation": "/docs",
        }

    return app


app = create_app()


def main():
    """Main entry point for API server."""
    import uvicorn

    uvicorn.run(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_config=None,  # Use structlog
    )


if __name__ == "__main__":
    main()
