"""Pytest configuration and fixtures."""

from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from order_sync_service.config import Settings, get_settings
from order_sync_service.infrastructure.database.models import SCHEMA, Base
from order_sync_service.main import create_app
from tests.fakes import FakeCaseStore, FakeProcessModel


@pytest.fixture
def test_settings() -> Settings:
    """Get test settings with overrides."""
    return Settings(
        app_env="test",
        debug=True,
        postgres_host="localhost",
        postgres_port=5432,
        postgres_user="test",
        postgres_password="test",
        postgres_db="test_db",
        redis_host="localhost",
        redis_port=6379,
    )


@pytest.fixture
def app(test_settings: Settings) -> Any:
    """Create test application."""
    # Override settings
    def get_test_settings() -> Settings:
        return test_settings

    app = create_app()
    app.dependency_overrides[get_settings] = get_test_settings
    return app


@pytest.fixture
def client(app: Any) -> TestClient:
    """Create synchronous test client."""
    return TestClient(app)


@pytest.fixture
def case_store() -> FakeCaseStore:
    return FakeCaseStore()


@pytest.fixture
def process_model() -> FakeProcessModel:
    return FakeProcessModel().add_stage(1010).add_stage(1020).add_stage(1030)


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Synchronous session on an in-memory SQLite database with all tables."""
    engine = create_engine("sqlite://").execution_options(schema_translate_map={SCHEMA: None})
    Base.metadata.create_all(engine)
    with Session(engine, expire_on_commit=False) as session:
        yield session
    engine.dispose()
