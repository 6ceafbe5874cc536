"""Domain types for the order import.

Magento order records carry an open set of fields: scalars, nested objects
(addresses) and lists of objects (order items, comments). They are kept as a
tagged ``FieldValue`` so snapshots can be compared structurally and stored as
plain JSON without losing that shape.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from order_sync_service.exceptions import TransportError
from shared.constants import (
    ACTIVITY_CREATE,
    ACTIVITY_RESYNC,
    ACTIVITY_UPDATE,
    ORDER_KEY_PREFIX,
)

# =============================================================================
# Field values
# =============================================================================


@dataclass(frozen=True)
class Scalar:
    """A single wire value, always held as text (or None for JSON null)."""

    value: str | None


@dataclass(frozen=True)
class Nested:
    """A nested object, e.g. one address."""

    fields: Mapping[str, "FieldValue"]


@dataclass(frozen=True)
class Items:
    """A list of values, e.g. the order items."""

    entries: tuple["FieldValue", ...]


FieldValue = Union[Scalar, Nested, Items]


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def to_field_value(raw: Any) -> FieldValue:
    """Convert a decoded JSON value into a FieldValue.

    Scalars are compared as exact strings: ``"200.0000"`` and ``"200.0"``
    are different values.
    """
    if isinstance(raw, (Scalar, Nested, Items)):
        return raw
    if isinstance(raw, Mapping):
        return Nested({str(key): to_field_value(value) for key, value in raw.items()})
    if isinstance(raw, (list, tuple)):
        return Items(tuple(to_field_value(value) for value in raw))
    return Scalar(_as_text(raw))


def to_plain(value: FieldValue) -> Any:
    """Convert a FieldValue back into JSON-serializable data."""
    if isinstance(value, Scalar):
        return value.value
    if isinstance(value, Nested):
        return {key: to_plain(item) for key, item in value.fields.items()}
    return [to_plain(item) for item in value.entries]


def snapshot_from_plain(raw: Mapping[str, Any] | None) -> dict[str, FieldValue]:
    """Rebuild a stored snapshot."""
    return {str(key): to_field_value(value) for key, value in (raw or {}).items()}


def snapshot_to_plain(snapshot: Mapping[str, FieldValue]) -> dict[str, Any]:
    return {key: to_plain(value) for key, value in snapshot.items()}


def scalar_text(snapshot: Mapping[str, FieldValue], name: str) -> str:
    """Text of a scalar field, empty string if missing or not a scalar."""
    value = snapshot.get(name)
    if isinstance(value, Scalar) and value.value is not None:
        return value.value
    return ""


# =============================================================================
# Orders and cases
# =============================================================================


@dataclass
class OrderRecord:
    """One Magento order as read from the API."""

    entity_id: str
    status: str
    fields: dict[str, FieldValue]
    increment_id: str | None = None

    @classmethod
    def from_wire(cls, raw: Mapping[str, Any]) -> "OrderRecord":
        entity_id = _as_text(raw.get("entity_id"))
        if not entity_id:
            raise TransportError("order record without entity_id")
        return cls(
            entity_id=entity_id,
            status=_as_text(raw.get("status")) or "",
            fields=snapshot_from_plain(raw),
            increment_id=_as_text(raw.get("increment_id")) or None,
        )

    def order_key(self, shop_id: str) -> str:
        """Stable identity of the order within its shop."""
        return f"{ORDER_KEY_PREFIX}:{shop_id}:{self.increment_id or self.entity_id}"


@dataclass
class CaseRecord:
    """The local workflow case of an imported order.

    ``stage_id`` is the workflow stage the case is at. ``synced_stage_id`` is
    the stage the shop status was mapped to when the case was last imported;
    the reconciler compares that one, since transitions may move the case on.
    """

    order_key: str
    shop_id: str
    model_version: str
    stage_id: int
    snapshot: dict[str, FieldValue] = field(default_factory=dict)
    error: str = ""
    last_activity_id: int | None = None
    order_id: str = ""
    customer_name: str = ""
    customer_email: str = ""
    synced_stage_id: int | None = None
    id: int | None = None


@dataclass(frozen=True)
class Transition:
    """A stage scoped workflow activity."""

    model_version: str
    stage_id: int
    activity_id: int
    next_stage_id: int
    name: str = ""


class ReconcileAction(str, Enum):
    """What an import run does with an order."""

    CREATE = "create"
    UPDATE = "update"
    RESYNC = "resync"

    @property
    def activity_id(self) -> int:
        return ACTIVITY_BY_ACTION[self]


ACTIVITY_BY_ACTION = {
    ReconcileAction.CREATE: ACTIVITY_CREATE,
    ReconcileAction.UPDATE: ACTIVITY_UPDATE,
    ReconcileAction.RESYNC: ACTIVITY_RESYNC,
}


# =============================================================================
# Status mapping
# =============================================================================

StatusMappingEntry = tuple[str, str]


def parse_status_mapping(lines: Iterable[str]) -> list[StatusMappingEntry]:
    """Split ``status=stage`` lines into ordered (status, stage) entries.

    Entries are not validated here; a line without ``=`` yields an empty
    stage so the reconciler rejects it with a warning.
    """
    entries: list[StatusMappingEntry] = []
    for line in lines:
        status, _, stage = line.strip().partition("=")
        entries.append((status.strip(), stage.strip()))
    return entries


# =============================================================================
# Import results
# =============================================================================


@dataclass
class PlannedAction:
    """An action decided for one order, with its outcome."""

    action: ReconcileAction
    order_key: str
    stage_id: int
    status: str
    applied: bool = False
    error: str | None = None


@dataclass
class ImportResult:
    """Counters and actions of one reconciliation run."""

    created: int = 0
    updated: int = 0
    resynced: int = 0
    failed: int = 0
    total: int = 0
    actions: list[PlannedAction] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    skipped_statuses: list[str] = field(default_factory=list)
    cancelled: bool = False

    def count_applied(self, action: ReconcileAction) -> None:
        if action is ReconcileAction.CREATE:
            self.created += 1
        elif action is ReconcileAction.UPDATE:
            self.updated += 1
        else:
            self.resynced += 1

    def summary(self) -> dict[str, Any]:
        return {
            "created": self.created,
            "updated": self.updated,
            "resynced": self.resynced,
            "failed": self.failed,
            "total": self.total,
            "errors": list(self.errors),
            "skipped_statuses": list(self.skipped_statuses),
            "cancelled": self.cancelled,
        }
