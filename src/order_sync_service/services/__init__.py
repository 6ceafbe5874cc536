"""Business logic services."""

from order_sync_service.services.case_store import SqlCaseStore, SqlProcessModel
from order_sync_service.services.configuration_store import ConfigurationStore
from order_sync_service.services.order_import import OrderImportService
from order_sync_service.services.reconciler import OrderImportReconciler
from order_sync_service.services.schedule import ImportSchedule
from order_sync_service.services.workflow import WorkflowService

__all__ = [
    "ConfigurationStore",
    "ImportSchedule",
    "OrderImportReconciler",
    "OrderImportService",
    "SqlCaseStore",
    "SqlProcessModel",
    "WorkflowService",
]
