"""Shop configuration access for the sync worker."""

from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.orm import Session

from order_sync_service.domain import ImportResult
from order_sync_service.infrastructure.database.models import ShopConfiguration
from shared.constants import STATUS_TIME_FORMAT

logger = structlog.get_logger()


class ConfigurationStore:
    """Reads shop configurations and records import statistics."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, configuration_id: int) -> ShopConfiguration | None:
        return self.session.get(ShopConfiguration, configuration_id)

    def get_by_name(self, shop_id: str) -> ShopConfiguration | None:
        return self.session.execute(
            select(ShopConfiguration).where(ShopConfiguration.name == shop_id)
        ).scalar_one_or_none()

    def list_enabled(self) -> list[ShopConfiguration]:
        result = self.session.execute(
            select(ShopConfiguration)
            .where(ShopConfiguration.enabled.is_(True))
            .order_by(ShopConfiguration.id)
        )
        return list(result.scalars().all())

    def persist_import_statistics(
        self,
        shop_id: str,
        result: ImportResult,
        finished_at: datetime | None = None,
    ) -> None:
        """Store the counters of a finished run on the shop configuration."""
        configuration = self.get_by_name(shop_id)
        if configuration is None:
            logger.warning("No configuration to store statistics on", shop=shop_id)
            return

        configuration.last_run_at = finished_at or datetime.now(timezone.utc)
        configuration.num_created = result.created
        configuration.num_updated = result.updated
        configuration.num_resynced = result.resynced
        configuration.num_failed = result.failed
        configuration.num_total = result.total
        configuration.error_message = "; ".join(result.errors) or None
        self.session.commit()

    def record_failure(self, shop_id: str, message: str) -> None:
        """Store a run level error without touching the counters."""
        configuration = self.get_by_name(shop_id)
        if configuration is None:
            return
        configuration.error_message = message
        self.session.commit()

    def mark_stopped(self, configuration: ShopConfiguration, reason: str, now: datetime | None = None) -> None:
        """Disable a configuration, e.g. once its stop date has passed."""
        now = now or datetime.now(timezone.utc)
        configuration.enabled = False
        configuration.status_message = f"stopped at {now.strftime(STATUS_TIME_FORMAT)} ({reason})"
        self.session.commit()
        logger.info("Import schedule stopped", shop=configuration.name, reason=reason)
