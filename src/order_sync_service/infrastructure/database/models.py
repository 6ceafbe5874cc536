"""SQLAlchemy models for the order sync service.

All tables live in the 'order_sync' schema.
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

SCHEMA = "order_sync"


class Base(DeclarativeBase):
    """Base class for all models."""

    __table_args__ = {"schema": SCHEMA}


# =============================================================================
# Shop Configurations
# =============================================================================


class ShopConfiguration(Base):
    """A Magento shop to import orders from, with its schedule and last run statistics."""

    __tablename__ = "shop_configurations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    # Magento access
    base_url: Mapped[str] = mapped_column(String(500), nullable=False)
    access_token: Mapped[str] = mapped_column(String(500), default="")

    # Import mapping, one "status=stage" line per entry
    model_version: Mapped[str] = mapped_column(String(255), nullable=False)
    status_mapping: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # Schedule: interval or calendar lines ("minute=*/15", "hour=8-18", ...)
    interval_seconds: Mapped[Optional[int]] = mapped_column(Integer)
    calendar: Mapped[Optional[list]] = mapped_column(JSON)
    start_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    stop_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Run status
    status_message: Mapped[str] = mapped_column(String(500), default="")
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    last_run_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    last_scheduled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Statistics of the last run
    num_created: Mapped[int] = mapped_column(Integer, default=0)
    num_updated: Mapped[int] = mapped_column(Integer, default=0)
    num_resynced: Mapped[int] = mapped_column(Integer, default=0)
    num_failed: Mapped[int] = mapped_column(Integer, default=0)
    num_total: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = ({"schema": SCHEMA},)


# =============================================================================
# Process Model
# =============================================================================


class ModelTransition(Base):
    """An activity of the process model: applying it at a stage moves a case to the next stage."""

    __tablename__ = "model_transitions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    model_version: Mapped[str] = mapped_column(String(255), nullable=False)
    stage_id: Mapped[int] = mapped_column(Integer, nullable=False)
    activity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    next_stage_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), default="")

    __table_args__ = (
        Index(
            "ix_model_transitions_lookup",
            "model_version",
            "stage_id",
            "activity_id",
            unique=True,
        ),
        {"schema": SCHEMA},
    )


# =============================================================================
# Order Cases
# =============================================================================


class OrderCase(Base):
    """Workflow case of an imported Magento order."""

    __tablename__ = "order_cases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_key: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    shop_id: Mapped[str] = mapped_column(String(255), nullable=False)
    model_version: Mapped[str] = mapped_column(String(255), nullable=False)
    stage_id: Mapped[int] = mapped_column(Integer, nullable=False)
    synced_stage_id: Mapped[Optional[int]] = mapped_column(Integer)
    last_activity_id: Mapped[Optional[int]] = mapped_column(Integer)

    # Last known Magento order fields
    snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    error: Mapped[str] = mapped_column(Text, default="")

    # Derived from the snapshot when the case is processed
    order_id: Mapped[str] = mapped_column(String(255), default="")
    customer_name: Mapped[str] = mapped_column(String(500), default="")
    customer_email: Mapped[str] = mapped_column(String(500), default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_order_cases_shop_stage", "shop_id", "stage_id"),
        {"schema": SCHEMA},
    )
