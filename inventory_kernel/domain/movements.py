"""
Movements -- direction, cause and cause payloads of stock movements.

Responsibility:
    Defines the closed set of movement causes and, for each cause, the
    exact payload a movement of that cause carries.  A movement never has
    fields that are irrelevant to its cause.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - PURCHASE and INITIAL movements are always IN.
    - SALE movements are always OUT.
    - ADJUSTMENT movements may be IN (carrying the created batch) or OUT
      (aggregate; carrying no batch).
    - ``cause_from_payload`` rejects payload keys not permitted for the cause.

Failure modes:
    - InvalidRequestError on a direction not permitted for the cause, or on
      a payload with missing or foreign keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar
from uuid import UUID

from inventory_kernel.exceptions import InvalidQuantityError, InvalidRequestError


class MovementType(str, Enum):
    """Direction of a stock movement."""

    IN = "in"
    OUT = "out"


class MovementCause(str, Enum):
    """What caused a stock movement."""

    PURCHASE = "purchase"
    INITIAL = "initial"
    ADJUSTMENT = "adjustment"
    SALE = "sale"


# Directions each cause may take
ALLOWED_TYPES: dict[MovementCause, frozenset[MovementType]] = {
    MovementCause.PURCHASE: frozenset({MovementType.IN}),
    MovementCause.INITIAL: frozenset({MovementType.IN}),
    MovementCause.ADJUSTMENT: frozenset({MovementType.IN, MovementType.OUT}),
    MovementCause.SALE: frozenset({MovementType.OUT}),
}

# Causes that create batches
RECEIPT_CAUSES = frozenset(
    {MovementCause.PURCHASE, MovementCause.INITIAL, MovementCause.ADJUSTMENT}
)


@dataclass(frozen=True)
class PurchaseCause:
    """Stock received on a purchase line."""

    cause: ClassVar[MovementCause] = MovementCause.PURCHASE

    purchase_id: UUID
    purchase_line_id: UUID
    batch_id: UUID

    @property
    def reference_id(self) -> UUID:
        return self.purchase_id


@dataclass(frozen=True)
class InitialCause:
    """Opening stock entered by hand."""

    cause: ClassVar[MovementCause] = MovementCause.INITIAL

    batch_id: UUID

    @property
    def reference_id(self) -> UUID:
        return self.batch_id


@dataclass(frozen=True)
class AdjustmentCause:
    """
    Physical count correction.

    Increases carry the zero-cost batch they created.  Decreases carry no
    batch: one aggregate movement covers every batch the depletion touched.
    """

    cause: ClassVar[MovementCause] = MovementCause.ADJUSTMENT

    batch_id: UUID | None = None

    @property
    def reference_id(self) -> UUID | None:
        return self.batch_id


@dataclass(frozen=True)
class SaleCause:
    """Stock shipped on a sale line."""

    cause: ClassVar[MovementCause] = MovementCause.SALE

    sale_id: UUID
    sale_line_id: UUID

    @property
    def reference_id(self) -> UUID:
        return self.sale_id


CauseDetail = PurchaseCause | InitialCause | AdjustmentCause | SaleCause

_CAUSE_CLASSES: dict[MovementCause, type] = {
    MovementCause.PURCHASE: PurchaseCause,
    MovementCause.INITIAL: InitialCause,
    MovementCause.ADJUSTMENT: AdjustmentCause,
    MovementCause.SALE: SaleCause,
}

_PAYLOAD_FIELDS: dict[MovementCause, tuple[str, ...]] = {
    MovementCause.PURCHASE: ("purchase_id", "purchase_line_id", "batch_id"),
    MovementCause.INITIAL: ("batch_id",),
    MovementCause.ADJUSTMENT: ("batch_id",),
    MovementCause.SALE: ("sale_id", "sale_line_id"),
}


def check_direction(cause: MovementCause, movement_type: MovementType) -> None:
    """Raise if ``movement_type`` is not a permitted direction for ``cause``."""
    if movement_type not in ALLOWED_TYPES[cause]:
        raise InvalidRequestError(
            "movement_type",
            f"{cause.value} movements cannot be {movement_type.value}",
        )


def cause_to_payload(detail: CauseDetail) -> dict[str, str | None]:
    """Serialize a cause detail to its JSON payload."""
    payload: dict[str, str | None] = {}
    for name in _PAYLOAD_FIELDS[detail.cause]:
        value = getattr(detail, name)
        payload[name] = str(value) if value is not None else None
    return payload


def cause_from_payload(
    cause: MovementCause, payload: dict[str, Any] | None
) -> CauseDetail:
    """Rebuild a cause detail from its stored payload."""
    payload = payload or {}
    permitted = _PAYLOAD_FIELDS[cause]
    foreign = set(payload) - set(permitted)
    if foreign:
        raise InvalidRequestError(
            "cause_payload",
            f"{cause.value} payload does not accept {sorted(foreign)}",
        )
    kwargs: dict[str, UUID | None] = {}
    for name in permitted:
        raw = payload.get(name)
        if raw is None:
            if cause is not MovementCause.ADJUSTMENT:
                raise InvalidRequestError(
                    "cause_payload", f"{cause.value} payload requires {name}"
                )
            kwargs[name] = None
        else:
            kwargs[name] = raw if isinstance(raw, UUID) else UUID(str(raw))
    return _CAUSE_CLASSES[cause](**kwargs)


@dataclass(frozen=True)
class MovementEntry:
    """A stock movement as it is appended to the ledger."""

    product_id: UUID
    movement_type: MovementType
    quantity: int
    detail: CauseDetail
    reason: str | None
    occurred_at: datetime

    def __post_init__(self) -> None:
        check_direction(self.detail.cause, self.movement_type)
        if self.quantity < 1:
            raise InvalidQuantityError(self.quantity)

    @property
    def cause(self) -> MovementCause:
        return self.detail.cause
