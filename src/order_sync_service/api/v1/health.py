"""Health check endpoints."""

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from order_sync_service import __version__
from order_sync_service.config import get_settings
from order_sync_service.infrastructure.database.connection import get_db_session
from order_sync_service.infrastructure.redis import get_redis_client

router = APIRouter()
logger = structlog.get_logger()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    environment: str
    timestamp: str
    dependencies: dict[str, Any]


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict[str, bool]


async def check_postgres() -> bool:
    try:
        async with get_db_session() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("PostgreSQL not ready", error=str(e))
        return False


async def check_redis() -> bool:
    client = await get_redis_client()
    if client is None:
        return False
    try:
        return bool(await client.ping())
    except Exception as e:
        logger.warning("Redis not ready", error=str(e))
        return False


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns the service status and version information.
    """
    settings = get_settings()

    return HealthResponse(
        status="healthy",
        version=__version__,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc).isoformat(),
        dependencies={
            "postgres": "configured",
            "redis": "configured",
        },
    )


@router.get("/health/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """
    Readiness check endpoint.

    Verifies that PostgreSQL and Redis (lock store and Celery broker) answer.
    """
    checks = {
        "postgres": await check_postgres(),
        "redis": await check_redis(),
    }
    return ReadinessResponse(ready=all(checks.values()), checks=checks)


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """Returns 200 while the service is running."""
    return {"status": "alive"}
