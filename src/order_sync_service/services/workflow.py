"""Applying import actions to order cases."""

from typing import Protocol

import structlog
from sqlalchemy.exc import SQLAlchemyError

from order_sync_service.domain import (
    CaseRecord,
    Items,
    Nested,
    ReconcileAction,
    scalar_text,
)
from order_sync_service.exceptions import ApplyError
from order_sync_service.services.reconciler import TransitionLookup

logger = structlog.get_logger()


class CaseWriter(Protocol):
    def save(self, case: CaseRecord) -> CaseRecord: ...

    def record_error(self, order_key: str, message: str) -> None: ...

    def rollback(self) -> None: ...


class WorkflowService:
    """Processes order cases with the activity of an import action."""

    def __init__(self, cases: CaseWriter, process_model: TransitionLookup):
        self.cases = cases
        self.process_model = process_model

    def apply_action(self, case: CaseRecord, action: ReconcileAction, target_stage_id: int) -> None:
        """
        Process a case with the activity of the action.

        CREATE and RESYNC start the case at the target stage. UPDATE is
        applied at the stage the case is at, which transitions may have
        moved past the target stage.

        Raises:
            ApplyError: the stage has no transition for the activity or the
                case could not be stored
        """
        activity_id = action.activity_id
        stage_id = case.stage_id if action is ReconcileAction.UPDATE else target_stage_id
        transition = self.process_model.get_model_transition(
            case.model_version, stage_id, activity_id
        )
        if transition is None:
            message = (
                f"activity {stage_id}.{activity_id} not defined "
                f"in model {case.model_version}"
            )
            if case.id is not None:
                self.cases.record_error(case.order_key, message)
            raise ApplyError(message)

        case.stage_id = transition.next_stage_id
        case.synced_stage_id = target_stage_id
        case.last_activity_id = activity_id
        case.error = ""
        enrich_case(case)

        try:
            self.cases.save(case)
        except SQLAlchemyError as e:
            self.cases.rollback()
            raise ApplyError(f"unable to store case {case.order_key}: {e}") from e

        logger.debug(
            "Case processed",
            order_key=case.order_key,
            activity_id=activity_id,
            stage=case.stage_id,
        )


def enrich_case(case: CaseRecord) -> None:
    """Derive order id and customer from the order snapshot.

    The customer is taken from the first address of the order.
    """
    case.order_id = scalar_text(case.snapshot, "entity_id")

    addresses = case.snapshot.get("addresses")
    if not isinstance(addresses, Items) or not addresses.entries:
        return
    address = addresses.entries[0]
    if not isinstance(address, Nested):
        return

    name = " ".join(
        part
        for part in (scalar_text(address.fields, "firstname"), scalar_text(address.fields, "lastname"))
        if part
    )
    case.customer_name = name
    case.customer_email = scalar_text(address.fields, "email")
