"""FastAPI application entry point."""

import structlog
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from order_sync_service import __version__
from order_sync_service.api.v1.router import api_router
from order_sync_service.config import get_settings
from order_sync_service.infrastructure.database.connection import close_db
from order_sync_service.infrastructure.redis import close_redis
from shared.logging import configure_logging

configure_logging(debug=get_settings().debug, log_level=get_settings().log_level)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    settings = get_settings()
    logger.info(
        "Starting Magento Order Sync Service",
        app_env=settings.app_env,
        debug=settings.debug,
    )

    yield

    await close_redis()
    await close_db()
    logger.info("Shutting down Magento Order Sync Service")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Magento Order Sync API",
        description="Imports Magento orders into workflow cases and manages the per-shop import schedules",
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
    )

    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


def run() -> None:
    """Run the application using uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "order_sync_service.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.api_workers,
    )


if __name__ == "__main__":
    run()
