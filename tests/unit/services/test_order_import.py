"""Unit tests for running the import of one shop (SQLite in memory, mocked Magento)."""

from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import Session

from order_sync_service.domain import Transition
from order_sync_service.exceptions import ImportAlreadyRunning
from order_sync_service.infrastructure.database.models import ShopConfiguration
from order_sync_service.infrastructure.redis import RunLock
from order_sync_service.services.case_store import SqlCaseStore, SqlProcessModel
from order_sync_service.services.order_import import OrderImportService
from shared.constants import ACTIVITY_CREATE, ACTIVITY_UPDATE
from tests.fakes import MODEL_VERSION, SHOP_ID, MagentoStub, make_order_payload

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def configuration(session: Session) -> ShopConfiguration:
    SqlProcessModel(session).replace_transitions(
        MODEL_VERSION,
        [
            Transition(MODEL_VERSION, 1010, ACTIVITY_CREATE, 1100),
            Transition(MODEL_VERSION, 1100, ACTIVITY_UPDATE, 1100),
        ],
    )
    configuration = ShopConfiguration(
        name=SHOP_ID,
        base_url="https://shop1.example.com",
        access_token="secret",
        model_version=MODEL_VERSION,
        status_mapping=["pending=1010"],
        interval_seconds=600,
        enabled=True,
    )
    session.add(configuration)
    session.commit()
    return configuration


def service_for(session: Session, stub: MagentoStub) -> OrderImportService:
    return OrderImportService(session, redis_client=None, client_factory=stub.client_factory, clock=lambda: NOW)


class TestOrderImportService:
    def test_run_creates_cases_and_stores_statistics(
        self, session: Session, configuration: ShopConfiguration
    ) -> None:
        stub = MagentoStub({"pending": [make_order_payload(1, increment_id="100000001"), make_order_payload(2)]})

        result = service_for(session, stub).run(configuration)

        assert result.created == 2
        assert (configuration.num_created, configuration.num_total, configuration.num_failed) == (2, 2, 0)
        assert configuration.last_run_at == NOW
        assert configuration.error_message is None

        case = SqlCaseStore(session).find_case_by_order_key("magento:order:shop1:100000001")
        assert case.stage_id == 1100
        assert case.synced_stage_id == 1010
        assert case.customer_email == "erika@example.com"

    def test_second_run_with_unchanged_orders_does_nothing(
        self, session: Session, configuration: ShopConfiguration
    ) -> None:
        stub = MagentoStub({"pending": [make_order_payload(1), make_order_payload(2)]})
        service_for(session, stub).run(configuration)

        result = service_for(session, stub).run(configuration)

        assert result.actions == []
        assert (configuration.num_created, configuration.num_resynced, configuration.num_total) == (0, 0, 2)

    def test_rejected_credentials_are_stored_as_error(
        self, session: Session, configuration: ShopConfiguration
    ) -> None:
        result = service_for(session, MagentoStub(status_code=401)).run(configuration)

        assert result.total == 0
        assert configuration.error_message == "status=pending: [401] magento returned HTTP 401"
        assert configuration.last_run_at == NOW

    def test_stop_date_is_the_deadline(self, session: Session, configuration: ShopConfiguration) -> None:
        configuration.stop_at = datetime(2026, 10, 1, tzinfo=timezone.utc)
        stub = MagentoStub({"pending": [make_order_payload(1)]})

        result = service_for(session, stub).run(configuration)

        assert result.cancelled is True
        assert stub.requests == []

    def test_held_lock_rejects_run(self, session: Session, configuration: ShopConfiguration) -> None:
        stub = MagentoStub({"pending": [make_order_payload(1)]})

        with RunLock(None, SHOP_ID):
            with pytest.raises(ImportAlreadyRunning):
                service_for(session, stub).run(configuration)

        assert stub.requests == []
