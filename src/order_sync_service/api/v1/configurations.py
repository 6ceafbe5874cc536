"""Shop configuration endpoints: manage, start and stop the order import."""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, HTTPException
from kombu.exceptions import OperationalError
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from order_sync_service.exceptions import ConfigurationError
from order_sync_service.infrastructure.database.connection import get_session
from order_sync_service.infrastructure.database.models import ShopConfiguration
from order_sync_service.services.schedule import ImportSchedule
from shared.constants import STATUS_TIME_FORMAT

router = APIRouter()
logger = structlog.get_logger()

IMPORT_TASK = "sync_worker.tasks.import_orders.import_shop_orders"


# =============================================================================
# Models
# =============================================================================


class ConfigurationRequest(BaseModel):
    """Shop configuration as sent by clients."""

    name: str = Field(..., min_length=1, max_length=255, description="Shop id, unique")
    base_url: str = Field(..., min_length=1, description="Magento base URL")
    access_token: str = Field("", description="Magento REST access token")
    model_version: str = Field(..., min_length=1, description="Process model version of new cases")
    status_mapping: list[str] = Field(
        default_factory=list,
        description="One 'status=stage' entry per Magento status, e.g. 'pending=1010'",
    )
    interval_seconds: int | None = Field(None, gt=0, description="Import interval")
    calendar: list[str] | None = Field(
        None,
        description="Calendar entries such as 'minute=*/15', 'hour=6-22', 'start=2026/01/01'",
    )
    start_at: datetime | None = None
    stop_at: datetime | None = None

    @field_validator("status_mapping", "calendar", mode="before")
    @classmethod
    def split_lines(cls, v: str | list[str] | None) -> list[str] | None:
        if isinstance(v, str):
            return [line.strip() for line in v.splitlines() if line.strip()]
        return v


class ImportStatistics(BaseModel):
    created: int
    updated: int
    resynced: int
    failed: int
    total: int


class ConfigurationResponse(BaseModel):
    """Shop configuration with schedule and run details."""

    id: int
    name: str
    base_url: str
    model_version: str
    status_mapping: list[str]
    interval_seconds: int | None
    calendar: list[str] | None
    start_at: datetime | None
    stop_at: datetime | None
    enabled: bool
    status_message: str
    error_message: str | None
    last_run_at: datetime | None
    statistics: ImportStatistics
    schedule: str | None
    next_run_at: datetime | None
    seconds_remaining: int | None


class ImportTaskResponse(BaseModel):
    success: bool
    task_id: str


def to_response(configuration: ShopConfiguration, now: datetime | None = None) -> ConfigurationResponse:
    """Build the response, including the next scheduled run of enabled configurations."""
    now = now or datetime.now(timezone.utc)
    schedule_text = None
    next_run_at = None
    try:
        schedule = ImportSchedule.from_configuration(configuration, now=lambda: now)
        schedule_text = schedule.describe()
        if configuration.enabled:
            next_run_at = schedule.next_run_at(configuration.last_scheduled_at)
    except ConfigurationError:
        pass

    return ConfigurationResponse(
        id=configuration.id,
        name=configuration.name,
        base_url=configuration.base_url,
        model_version=configuration.model_version,
        status_mapping=list(configuration.status_mapping or []),
        interval_seconds=configuration.interval_seconds,
        calendar=configuration.calendar,
        start_at=configuration.start_at,
        stop_at=configuration.stop_at,
        enabled=configuration.enabled,
        status_message=configuration.status_message or "",
        error_message=configuration.error_message,
        last_run_at=configuration.last_run_at,
        statistics=ImportStatistics(
            created=configuration.num_created or 0,
            updated=configuration.num_updated or 0,
            resynced=configuration.num_resynced or 0,
            failed=configuration.num_failed or 0,
            total=configuration.num_total or 0,
        ),
        schedule=schedule_text,
        next_run_at=next_run_at,
        seconds_remaining=(
            max(int((next_run_at - now).total_seconds()), 0) if next_run_at is not None else None
        ),
    )


def apply_request(configuration: ShopConfiguration, request: ConfigurationRequest) -> None:
    configuration.name = request.name
    configuration.base_url = request.base_url
    if request.access_token:
        configuration.access_token = request.access_token
    configuration.model_version = request.model_version
    configuration.status_mapping = request.status_mapping
    configuration.interval_seconds = request.interval_seconds
    configuration.calendar = request.calendar
    configuration.start_at = request.start_at
    configuration.stop_at = request.stop_at


async def _get_or_404(session: AsyncSession, configuration_id: int) -> ShopConfiguration:
    configuration = await session.get(ShopConfiguration, configuration_id)
    if configuration is None:
        raise HTTPException(status_code=404, detail=f"configuration {configuration_id} not found")
    return configuration


async def _ensure_unique_name(session: AsyncSession, name: str, configuration_id: int | None = None) -> None:
    result = await session.execute(select(ShopConfiguration.id).where(ShopConfiguration.name == name))
    existing = result.scalar_one_or_none()
    if existing is not None and existing != configuration_id:
        raise HTTPException(status_code=409, detail=f"shop '{name}' is already configured")


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=list[ConfigurationResponse])
async def list_configurations(
    session: AsyncSession = Depends(get_session),
) -> list[ConfigurationResponse]:
    """List all shop configurations."""
    result = await session.execute(select(ShopConfiguration).order_by(ShopConfiguration.name))
    now = datetime.now(timezone.utc)
    return [to_response(configuration, now) for configuration in result.scalars().all()]


@router.post("", response_model=ConfigurationResponse, status_code=201)
async def create_configuration(
    request: ConfigurationRequest,
    session: AsyncSession = Depends(get_session),
) -> ConfigurationResponse:
    """Create a shop configuration. New configurations are not scheduled until started."""
    await _ensure_unique_name(session, request.name)
    configuration = ShopConfiguration(
        enabled=False,
        status_message="",
        access_token="",
        num_created=0,
        num_updated=0,
        num_resynced=0,
        num_failed=0,
        num_total=0,
    )
    apply_request(configuration, request)
    session.add(configuration)
    await session.flush()
    await session.refresh(configuration)
    logger.info("Shop configuration created", shop=configuration.name)
    return to_response(configuration)


@router.get("/{configuration_id}", response_model=ConfigurationResponse)
async def get_configuration(
    configuration_id: int,
    session: AsyncSession = Depends(get_session),
) -> ConfigurationResponse:
    """Get a shop configuration with its schedule details."""
    return to_response(await _get_or_404(session, configuration_id))


@router.put("/{configuration_id}", response_model=ConfigurationResponse)
async def update_configuration(
    configuration_id: int,
    request: ConfigurationRequest,
    session: AsyncSession = Depends(get_session),
) -> ConfigurationResponse:
    """Update a shop configuration. An empty access_token keeps the stored one."""
    configuration = await _get_or_404(session, configuration_id)
    await _ensure_unique_name(session, request.name, configuration_id)
    apply_request(configuration, request)
    await session.flush()
    await session.refresh(configuration)
    return to_response(configuration)


@router.post("/{configuration_id}/start", response_model=ConfigurationResponse)
async def start_import(
    configuration_id: int,
    session: AsyncSession = Depends(get_session),
) -> ConfigurationResponse:
    """
    Start the scheduled import of a shop.

    The schedule is validated first; an invalid calendar, a missing interval
    or a stop date in the past is rejected with 422.
    """
    configuration = await _get_or_404(session, configuration_id)
    now = datetime.now(timezone.utc)
    try:
        schedule = ImportSchedule.from_configuration(configuration, now=lambda: now)
    except ConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    if schedule.is_expired():
        raise HTTPException(status_code=422, detail="stop date is in the past")

    configuration.enabled = True
    configuration.last_scheduled_at = None
    configuration.error_message = None
    configuration.status_message = f"started at {now.strftime(STATUS_TIME_FORMAT)}"
    await session.flush()
    await session.refresh(configuration)
    logger.info("Import schedule started", shop=configuration.name, schedule=schedule.describe())
    return to_response(configuration, now)


@router.post("/{configuration_id}/stop", response_model=ConfigurationResponse)
async def stop_import(
    configuration_id: int,
    session: AsyncSession = Depends(get_session),
) -> ConfigurationResponse:
    """Stop the scheduled import of a shop. A run in progress finishes."""
    configuration = await _get_or_404(session, configuration_id)
    if configuration.enabled:
        now = datetime.now(timezone.utc)
        configuration.enabled = False
        configuration.status_message = f"stopped at {now.strftime(STATUS_TIME_FORMAT)}"
        await session.flush()
        await session.refresh(configuration)
        logger.info("Import schedule stopped", shop=configuration.name)
    return to_response(configuration)


@router.post("/{configuration_id}/import", response_model=ImportTaskResponse, status_code=202)
async def run_import_now(
    configuration_id: int,
    session: AsyncSession = Depends(get_session),
) -> ImportTaskResponse:
    """Enqueue an import run of the shop right away, independent of its schedule."""
    from sync_worker.main import app as celery_app

    configuration = await _get_or_404(session, configuration_id)
    try:
        result = celery_app.send_task(IMPORT_TASK, args=[configuration.id])
    except OperationalError as e:
        logger.error("Unable to enqueue import", shop=configuration.name, error=str(e))
        raise HTTPException(status_code=503, detail="task broker unavailable") from e

    logger.info("Import enqueued", shop=configuration.name, task_id=result.id)
    return ImportTaskResponse(success=True, task_id=result.id)
