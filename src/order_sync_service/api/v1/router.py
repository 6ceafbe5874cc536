"""API v1 router that aggregates all endpoint routers."""

from fastapi import APIRouter

from order_sync_service.api.v1 import (
    cases,
    configurations,
    health,
)

api_router = APIRouter()

# Include all routers
api_router.include_router(
    health.router,
    tags=["Health"],
)

api_router.include_router(
    configurations.router,
    prefix="/configurations",
    tags=["Configurations"],
)

api_router.include_router(
    cases.router,
    prefix="/cases",
    tags=["Cases"],
)
