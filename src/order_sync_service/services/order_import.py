"""Order import of one shop configuration.

Wires the Magento client, the SQL stores and the workflow service into an
OrderImportReconciler, holds the shop's run lock and records the run
statistics on the configuration.
"""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy.orm import Session

from order_sync_service.config import get_settings
from order_sync_service.domain import ImportResult, parse_status_mapping
from order_sync_service.infrastructure.database.models import ShopConfiguration
from order_sync_service.infrastructure.magento.client import MagentoRestClient
from order_sync_service.infrastructure.redis import RunLock
from order_sync_service.services.case_store import SqlCaseStore, SqlProcessModel
from order_sync_service.services.configuration_store import ConfigurationStore
from order_sync_service.services.reconciler import OrderImportReconciler
from order_sync_service.services.schedule import as_utc
from order_sync_service.services.workflow import WorkflowService

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderImportService:
    """Runs the order import for shop configurations."""

    def __init__(
        self,
        session: Session,
        redis_client: Any = None,
        client_factory: Callable[[ShopConfiguration], MagentoRestClient] = MagentoRestClient.from_configuration,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session = session
        self.redis_client = redis_client
        self.client_factory = client_factory
        self.clock = clock
        self.configurations = ConfigurationStore(session)

    def run(self, configuration: ShopConfiguration) -> ImportResult:
        """
        Import the orders of one shop.

        Raises:
            ImportAlreadyRunning: another run of this shop holds the lock
        """
        settings = get_settings()
        shop_id = configuration.name

        with RunLock(self.redis_client, shop_id, timeout=settings.sync_run_lock_timeout_seconds):
            started = self.clock()
            logger.info("Processing import", shop=shop_id)

            case_store = SqlCaseStore(self.session)
            process_model = SqlProcessModel(self.session)
            reconciler = OrderImportReconciler(
                cases=case_store,
                process_model=process_model,
                applier=WorkflowService(case_store, process_model),
                page_size=settings.magento_page_size,
                clock=self.clock,
            )

            with self.client_factory(configuration) as client:
                result = reconciler.reconcile(
                    shop_id=shop_id,
                    status_mapping=parse_status_mapping(configuration.status_mapping or []),
                    model_version=configuration.model_version,
                    fetch_page=client.fetch_page,
                    deadline=as_utc(configuration.stop_at),
                )

            finished = self.clock()
            self.configurations.persist_import_statistics(shop_id, result, finished_at=finished)
            logger.info(
                "Import finished",
                shop=shop_id,
                duration_ms=round((finished - started).total_seconds() * 1000),
                **result.summary(),
            )
            return result
