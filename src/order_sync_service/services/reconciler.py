"""Order import reconciliation.

For each configured Magento status the reconciler pages through the shop's
orders, compares every order with its local workflow case and decides
whether the case has to be created, updated or resynchronized.
"""

from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Protocol

import structlog

from order_sync_service.domain import (
    CaseRecord,
    ImportResult,
    OrderRecord,
    PlannedAction,
    ReconcileAction,
    StatusMappingEntry,
    Transition,
)
from order_sync_service.exceptions import (
    ApplyError,
    AuthError,
    ConfigurationError,
    TransportError,
)
from shared.constants import ACTIVITY_CREATE, MAGENTO_PAGE_SIZE

logger = structlog.get_logger()

FetchPage = Callable[[str, str, int, int], Sequence[OrderRecord]]


class CaseLookup(Protocol):
    def find_case_by_order_key(self, order_key: str) -> CaseRecord | None: ...


class TransitionLookup(Protocol):
    def get_model_transition(
        self, model_version: str, stage_id: int, activity_id: int = ACTIVITY_CREATE
    ) -> Transition | None: ...


class ActionApplier(Protocol):
    def apply_action(
        self, case: CaseRecord, action: ReconcileAction, target_stage_id: int
    ) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _synced_stage(case: CaseRecord) -> int:
    # cases stored before the synced stage was recorded
    return case.synced_stage_id if case.synced_stage_id is not None else case.stage_id


class OrderImportReconciler:
    """Reconciles Magento orders against workflow cases."""

    def __init__(
        self,
        cases: CaseLookup,
        process_model: TransitionLookup,
        applier: ActionApplier | None = None,
        page_size: int = MAGENTO_PAGE_SIZE,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.cases = cases
        self.process_model = process_model
        self.applier = applier
        self.page_size = page_size
        self.clock = clock

    def reconcile(
        self,
        shop_id: str,
        status_mapping: Sequence[StatusMappingEntry],
        model_version: str,
        fetch_page: FetchPage,
        deadline: datetime | None = None,
    ) -> ImportResult:
        """
        Import all orders of the mapped statuses.

        Args:
            shop_id: Name of the shop configuration
            status_mapping: Ordered (magento status, stage id) entries
            model_version: Process model version of new cases
            fetch_page: Reads one page of orders for a status
            deadline: Stop before the next status once this time has passed

        Returns:
            ImportResult with counters and the planned actions
        """
        result = ImportResult()
        log = logger.bind(shop=shop_id, model_version=model_version)

        for status, raw_stage in status_mapping:
            if deadline is not None and self.clock() >= deadline:
                log.info("Import end time reached, stopping", deadline=deadline.isoformat())
                result.cancelled = True
                break

            try:
                stage_id = self._validate_entry(status, raw_stage, model_version)
            except ConfigurationError as e:
                log.warning("Skipping status mapping entry", status=status, error=str(e))
                result.skipped_statuses.append(status)
                continue

            try:
                orders = self._fetch_all(shop_id, status, fetch_page)
            except AuthError as e:
                log.error("Magento rejected credentials", status=status, code=e.code, error=e.message)
                result.errors.append(f"status={status}: {e}")
                break
            except TransportError as e:
                log.error("Unable to read orders", status=status, error=str(e))
                result.errors.append(f"status={status}: {e}")
                continue

            log.info("Orders found, start processing", status=status, orders=len(orders))
            for order in orders:
                self._reconcile_order(shop_id, status, stage_id, model_version, order, result)

        log.info("Reconciliation finished", **result.summary())
        return result

    def _validate_entry(self, status: str, raw_stage: str | int, model_version: str) -> int:
        if not status or any(ch.isspace() for ch in status):
            raise ConfigurationError(f"invalid magento status '{status}'")
        try:
            stage_id = int(raw_stage)
        except (TypeError, ValueError):
            raise ConfigurationError(f"invalid stage '{raw_stage}' for status '{status}'") from None

        if self.process_model.get_model_transition(model_version, stage_id) is None:
            raise ConfigurationError(
                f"activity {stage_id}.{ACTIVITY_CREATE} not defined in model {model_version}"
            )
        return stage_id

    def _fetch_all(self, shop_id: str, status: str, fetch_page: FetchPage) -> list[OrderRecord]:
        """Read all pages of a status.

        Magento answers out-of-range page numbers with the last page again, so
        paging also stops when a page starts with the same order as the one
        before.
        """
        orders: list[OrderRecord] = []
        page = 1
        previous_first: str | None = None

        while True:
            batch = fetch_page(shop_id, status, page, self.page_size)
            if not batch:
                break
            first = batch[0].entity_id
            if first == previous_first:
                logger.debug("Page repeats previous page, paging stopped", status=status, page=page)
                break
            orders.extend(batch)
            previous_first = first
            page += 1

        return orders

    def _reconcile_order(
        self,
        shop_id: str,
        status: str,
        stage_id: int,
        model_version: str,
        order: OrderRecord,
        result: ImportResult,
    ) -> None:
        result.total += 1
        order_key = order.order_key(shop_id)
        case = self.cases.find_case_by_order_key(order_key)

        if case is None:
            action = ReconcileAction.CREATE
            case = CaseRecord(
                order_key=order_key,
                shop_id=shop_id,
                model_version=model_version,
                stage_id=stage_id,
                synced_stage_id=stage_id,
                snapshot=dict(order.fields),
            )
        elif _synced_stage(case) != stage_id:
            action = ReconcileAction.RESYNC
            logger.info(
                "Case stage does not match order status",
                order_key=order_key,
                case_stage=_synced_stage(case),
                stage=stage_id,
            )
            case.stage_id = stage_id
            case.synced_stage_id = stage_id
            case.snapshot = dict(order.fields)
        elif case.snapshot != order.fields:
            action = ReconcileAction.UPDATE
            case.snapshot = dict(order.fields)
        else:
            return

        planned = PlannedAction(action=action, order_key=order_key, stage_id=stage_id, status=status)
        result.actions.append(planned)

        if self.applier is not None:
            try:
                self.applier.apply_action(case, action, stage_id)
            except ApplyError as e:
                result.failed += 1
                planned.error = str(e)
                logger.warning("Failed to import order", order_key=order_key, action=action.value, error=str(e))
                return

        planned.applied = True
        result.count_applied(action)
        logger.debug("Order imported", order_key=order_key, action=action.value)
