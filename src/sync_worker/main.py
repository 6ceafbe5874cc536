"""Celery application for sync worker."""

from celery import Celery

from order_sync_service.config import get_settings
from shared.logging import configure_logging

settings = get_settings()
configure_logging(debug=settings.debug, log_level=settings.log_level)

# Create Celery app
app = Celery(
    "sync_worker",
    broker=settings.celery_broker,
    backend=settings.celery_backend,
    include=[
        "sync_worker.tasks.import_orders",
    ],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=settings.sync_task_time_limit_seconds,
    task_soft_time_limit=settings.sync_task_soft_time_limit_seconds,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_default_queue="sync",
    task_routes={
        "sync_worker.tasks.*": {"queue": "sync"},
    },
)

# Beat schedule: the dispatcher checks every shop's own schedule
app.conf.beat_schedule = {
    "dispatch-order-imports": {
        "task": "sync_worker.tasks.import_orders.dispatch_due_imports",
        "schedule": float(settings.sync_dispatch_interval_seconds),
    },
}


def run() -> None:
    """Run the Celery worker."""
    app.worker_main(["worker", "--loglevel=info", "-Q", "sync"])


if __name__ == "__main__":
    run()
