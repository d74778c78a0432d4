"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, imagecraft.api.routers, uvicorn
System role: API entry point with router assembly and server launch
"""

from contextlib import asynccontextmanager
import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from imagecraft.api.deps.dependencies import get_service_cache
from imagecraft.configs import get_settings
from imagecraft.observability import configure_logging
from imagecraft.observability.middleware import (
    CORRELATION_HEADER,
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)
from .routers import (
    generation_router,
    health_router,
    images_router,
    messages_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events. In-flight generations get the
    configured grace period to settle on shutdown.
    """
    configure_logging(get_settings().log_level)
    logger = logging.getLogger(__name__)

    cache = get_service_cache()
    _ = cache.orchestrator
    logger.info(f"{__name__}:lifespan - Orchestrator ready, providers={cache.provider_registry.names()}")

    yield

    await cache.shutdown()
    logger.info(f"{__name__}:lifespan - Shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="ImageCraft API",
        description="Multi-provider image generation with incremental progress",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[CORRELATION_HEADER],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(generation_router, prefix="/api/v1")
    app.include_router(messages_router, prefix="/api/v1")
    app.include_router(images_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "imagecraft.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
