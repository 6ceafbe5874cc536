"""SQL storage of order cases and process model transitions."""

from collections.abc import Iterable

import structlog
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from order_sync_service.domain import (
    CaseRecord,
    Transition,
    snapshot_from_plain,
    snapshot_to_plain,
)
from order_sync_service.infrastructure.database.models import ModelTransition, OrderCase
from shared.constants import ACTIVITY_CREATE

logger = structlog.get_logger()


def case_from_row(row: OrderCase) -> CaseRecord:
    return CaseRecord(
        id=row.id,
        order_key=row.order_key,
        shop_id=row.shop_id,
        model_version=row.model_version,
        stage_id=row.stage_id,
        synced_stage_id=row.synced_stage_id,
        snapshot=snapshot_from_plain(row.snapshot),
        error=row.error or "",
        last_activity_id=row.last_activity_id,
        order_id=row.order_id or "",
        customer_name=row.customer_name or "",
        customer_email=row.customer_email or "",
    )


class SqlCaseStore:
    """Order cases stored in the order_cases table. Every write commits on its own."""

    def __init__(self, session: Session):
        self.session = session

    def _row(self, order_key: str) -> OrderCase | None:
        return self.session.execute(
            select(OrderCase).where(OrderCase.order_key == order_key)
        ).scalar_one_or_none()

    def find_case_by_order_key(self, order_key: str) -> CaseRecord | None:
        row = self._row(order_key)
        return case_from_row(row) if row is not None else None

    def save(self, case: CaseRecord) -> CaseRecord:
        """Insert or update a case and commit."""
        row = self._row(case.order_key)
        if row is None:
            row = OrderCase(order_key=case.order_key)
            self.session.add(row)

        row.shop_id = case.shop_id
        row.model_version = case.model_version
        row.stage_id = case.stage_id
        row.synced_stage_id = case.synced_stage_id
        row.last_activity_id = case.last_activity_id
        row.snapshot = snapshot_to_plain(case.snapshot)
        row.error = case.error
        row.order_id = case.order_id
        row.customer_name = case.customer_name
        row.customer_email = case.customer_email

        self.session.commit()
        case.id = row.id
        return case

    def record_error(self, order_key: str, message: str) -> None:
        """Annotate an existing case with an import error."""
        row = self._row(order_key)
        if row is None:
            return
        row.error = message
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SqlProcessModel:
    """Transitions of the process models, cached per instance."""

    def __init__(self, session: Session):
        self.session = session
        self._cache: dict[tuple[str, int, int], Transition | None] = {}

    def get_model_transition(
        self, model_version: str, stage_id: int, activity_id: int = ACTIVITY_CREATE
    ) -> Transition | None:
        key = (model_version, stage_id, activity_id)
        if key not in self._cache:
            row = self.session.execute(
                select(ModelTransition).where(
                    ModelTransition.model_version == model_version,
                    ModelTransition.stage_id == stage_id,
                    ModelTransition.activity_id == activity_id,
                )
            ).scalar_one_or_none()
            self._cache[key] = (
                Transition(
                    model_version=row.model_version,
                    stage_id=row.stage_id,
                    activity_id=row.activity_id,
                    next_stage_id=row.next_stage_id,
                    name=row.name or "",
                )
                if row is not None
                else None
            )
        return self._cache[key]

    def replace_transitions(self, model_version: str, transitions: Iterable[Transition]) -> int:
        """Replace all transitions of a model version. Returns the number stored."""
        self.session.execute(
            delete(ModelTransition).where(ModelTransition.model_version == model_version)
        )
        count = 0
        for transition in transitions:
            self.session.add(
                ModelTransition(
                    model_version=model_version,
                    stage_id=transition.stage_id,
                    activity_id=transition.activity_id,
                    next_stage_id=transition.next_stage_id,
                    name=transition.name,
                )
            )
            count += 1
        self.session.commit()
        self._cache.clear()
        logger.info("Process model stored", model_version=model_version, transitions=count)
        return count
