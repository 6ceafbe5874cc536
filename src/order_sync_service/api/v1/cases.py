"""Order case endpoints."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from order_sync_service.infrastructure.database.connection import get_session
from order_sync_service.infrastructure.database.models import OrderCase
from shared.constants import DEFAULT_CASE_LIMIT, MAX_CASE_LIMIT

router = APIRouter()


class CaseResponse(BaseModel):
    """Workflow case of an imported order."""

    order_key: str
    shop_id: str
    model_version: str
    stage_id: int
    synced_stage_id: int | None
    last_activity_id: int | None
    order_id: str
    customer_name: str
    customer_email: str
    error: str
    snapshot: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CaseListResponse(BaseModel):
    total: int
    limit: int
    offset: int
    cases: list[CaseResponse]


@router.get("", response_model=CaseListResponse)
async def list_cases(
    shop_id: str | None = Query(None, description="Only cases of this shop"),
    stage_id: int | None = Query(None, description="Only cases at this stage"),
    limit: int = Query(DEFAULT_CASE_LIMIT, ge=1, le=MAX_CASE_LIMIT),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
) -> CaseListResponse:
    """List order cases, newest first."""
    query = select(OrderCase)
    count_query = select(func.count(OrderCase.id))
    if shop_id is not None:
        query = query.where(OrderCase.shop_id == shop_id)
        count_query = count_query.where(OrderCase.shop_id == shop_id)
    if stage_id is not None:
        query = query.where(OrderCase.stage_id == stage_id)
        count_query = count_query.where(OrderCase.stage_id == stage_id)

    total = (await session.execute(count_query)).scalar_one()
    result = await session.execute(
        query.order_by(OrderCase.updated_at.desc(), OrderCase.id.desc()).limit(limit).offset(offset)
    )

    return CaseListResponse(
        total=total,
        limit=limit,
        offset=offset,
        cases=[CaseResponse.model_validate(row) for row in result.scalars().all()],
    )


@router.get("/{order_key:path}", response_model=CaseResponse)
async def get_case(
    order_key: str,
    session: AsyncSession = Depends(get_session),
) -> CaseResponse:
    """Get one case by its order key, e.g. 'magento:order:shop1:100000001'."""
    result = await session.execute(select(OrderCase).where(OrderCase.order_key == order_key))
    row = result.scalar_one_or_none()
    if row is None:
        raise HTTPException(status_code=404, detail=f"case {order_key} not found")
    return CaseResponse.model_validate(row)
