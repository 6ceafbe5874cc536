"""Order import tasks."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog
from celery import shared_task
from sqlalchemy.exc import SQLAlchemyError

from order_sync_service.exceptions import ConfigurationError, ImportAlreadyRunning, OrderSyncError
from order_sync_service.infrastructure.database.connection import get_sync_session
from order_sync_service.infrastructure.redis import get_sync_redis_client
from order_sync_service.services.configuration_store import ConfigurationStore
from order_sync_service.services.order_import import OrderImportService
from order_sync_service.services.schedule import ImportSchedule

logger = structlog.get_logger()


@dataclass
class DueConfigurations:
    """Outcome of checking the enabled configurations against their schedules."""

    due: list[Any] = field(default_factory=list)
    expired: list[Any] = field(default_factory=list)
    invalid: list[tuple[Any, str]] = field(default_factory=list)


def select_due(configurations: Iterable[Any], now: datetime) -> DueConfigurations:
    """Sort enabled configurations into due, expired and misconfigured ones."""
    selection = DueConfigurations()
    for configuration in configurations:
        try:
            schedule = ImportSchedule.from_configuration(configuration, now=lambda: now)
        except ConfigurationError as e:
            selection.invalid.append((configuration, str(e)))
            continue
        if schedule.is_expired():
            selection.expired.append(configuration)
        elif schedule.is_due(configuration.last_scheduled_at):
            selection.due.append(configuration)
    return selection


@shared_task
def dispatch_due_imports() -> dict:
    """
    Enqueue an import for every shop whose schedule is due.

    Runs from Celery beat. Configurations past their stop date are
    disabled, configurations with an invalid schedule get an error message.

    Returns:
        dict: Names of dispatched, stopped and invalid shops
    """
    now = datetime.now(timezone.utc)

    with get_sync_session() as session:
        store = ConfigurationStore(session)
        selection = select_due(store.list_enabled(), now)

        for configuration, error in selection.invalid:
            logger.warning("Invalid import schedule", shop=configuration.name, error=error)
            store.record_failure(configuration.name, error)

        for configuration in selection.expired:
            store.mark_stopped(configuration, "end date reached", now=now)

        for configuration in selection.due:
            configuration.last_scheduled_at = now
            session.commit()
            import_shop_orders.delay(configuration.id)
            logger.info("Import dispatched", shop=configuration.name)

        return {
            "dispatched": [c.name for c in selection.due],
            "stopped": [c.name for c in selection.expired],
            "invalid": [c.name for c, _ in selection.invalid],
        }


@shared_task(bind=True)
def import_shop_orders(self, configuration_id: int) -> dict:
    """
    Import the orders of one shop configuration.

    Errors never cancel the schedule: they are logged, stored on the
    configuration and the next scheduled run tries again.

    Args:
        configuration_id: Primary key of the shop configuration

    Returns:
        dict: Summary of the import run
    """
    structlog.contextvars.bind_contextvars(configuration_id=configuration_id)
    try:
        with get_sync_session() as session:
            store = ConfigurationStore(session)
            configuration = store.get(configuration_id)
            if configuration is None:
                logger.warning("Shop configuration not found")
                return {"skipped": True, "reason": "configuration not found"}

            shop_id = configuration.name
            structlog.contextvars.bind_contextvars(shop=shop_id)
            service = OrderImportService(session, redis_client=get_sync_redis_client())
            try:
                result = service.run(configuration)
            except ImportAlreadyRunning as e:
                logger.info("Import skipped", reason=str(e))
                return {"shop": shop_id, "skipped": True, "reason": str(e)}
            except OrderSyncError as e:
                logger.error("Import failed", error=str(e))
                store.record_failure(shop_id, str(e))
                return {"shop": shop_id, "failed": True, "error": str(e)}
            except SQLAlchemyError as e:
                logger.error("Import failed on database error", error=str(e))
                session.rollback()
                store.record_failure(shop_id, f"database error: {e}")
                return {"shop": shop_id, "failed": True, "error": str(e)}

            return {"shop": shop_id, **result.summary()}
    finally:
        structlog.contextvars.unbind_contextvars("configuration_id", "shop")
