"""Unit tests for shop configuration request and response models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from order_sync_service.api.v1.configurations import ConfigurationRequest, apply_request, to_response
from order_sync_service.infrastructure.database.models import ShopConfiguration

NOW = datetime(2026, 10, 19, 10, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def configuration() -> ShopConfiguration:
    return ShopConfiguration(
        id=1,
        name="shop1",
        base_url="https://shop1.example.com",
        access_token="secret",
        model_version="orders-v1",
        status_mapping=["pending=1010", "processing=1020"],
        interval_seconds=600,
        calendar=None,
        start_at=None,
        stop_at=None,
        enabled=True,
        status_message="started at 19.10.26 10:00:00",
        error_message=None,
        last_run_at=None,
        last_scheduled_at=NOW - timedelta(seconds=100),
        num_created=2,
        num_updated=1,
        num_resynced=0,
        num_failed=0,
        num_total=3,
    )


class TestConfigurationRequest:
    def test_multiline_mapping_is_split(self) -> None:
        request = ConfigurationRequest(
            name="shop1",
            base_url="https://shop1.example.com",
            model_version="orders-v1",
            status_mapping="pending=1010\n\nprocessing=1020\n",
            calendar="minute=*/15\nhour=6-22",
        )

        assert request.status_mapping == ["pending=1010", "processing=1020"]
        assert request.calendar == ["minute=*/15", "hour=6-22"]

    def test_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ConfigurationRequest(
                name="shop1",
                base_url="https://shop1.example.com",
                model_version="orders-v1",
                interval_seconds=0,
            )

    def test_empty_token_keeps_stored_token(self, configuration: ShopConfiguration) -> None:
        request = ConfigurationRequest(
            name="shop1",
            base_url="https://shop1.example.com/",
            model_version="orders-v2",
            status_mapping=["pending=1010"],
            interval_seconds=300,
        )

        apply_request(configuration, request)

        assert configuration.access_token == "secret"
        assert configuration.model_version == "orders-v2"
        assert configuration.interval_seconds == 300


class TestConfigurationResponse:
    def test_schedule_details(self, configuration: ShopConfiguration) -> None:
        response = to_response(configuration, NOW)

        assert response.schedule == "every 600s"
        assert response.next_run_at == NOW + timedelta(seconds=500)
        assert response.seconds_remaining == 500
        assert response.statistics.created == 2
        assert response.statistics.total == 3
        assert "access_token" not in response.model_dump()

    def test_disabled_configuration_has_no_next_run(self, configuration: ShopConfiguration) -> None:
        configuration.enabled = False

        response = to_response(configuration, NOW)

        assert response.next_run_at is None
        assert response.seconds_remaining is None

    def test_invalid_schedule_is_reported_without_details(self, configuration: ShopConfiguration) -> None:
        configuration.interval_seconds = None

        response = to_response(configuration, NOW)

        assert response.schedule is None
        assert response.next_run_at is None
