"""
MovementLedger -- append-only stock movement ledger.

Responsibility:
    Persists one MovementRecord per validated MovementEntry, in per-product
    sequence order, and reports ledger totals per product.

Architecture position:
    Services -- imperative shell, flush-only.

Invariants enforced:
    - Movements are appended, never updated or deleted (ORM listener in
      inventory_kernel/db/immutability.py).
    - For every product, sum(IN) - sum(OUT) equals the stock held in its
      batches; every stock-changing workflow writes the batch change and
      its movement in the same unit of work.
"""

from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.movements import MovementEntry
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.movement import MovementRecord
from inventory_kernel.selectors.movement_selector import MovementSelector
from inventory_services.base import BaseService
from inventory_services.sequence_service import SequenceService, movement_sequence_name

logger = get_logger("services.movement_ledger")


class MovementLedger(BaseService[MovementRecord]):
    def __init__(self, session: Session, sequences: SequenceService | None = None):
        super().__init__(session)
        self._sequences = sequences or SequenceService(session)

    def append(self, entry: MovementEntry) -> MovementRecord:
        sequence = self._sequences.next_value(movement_sequence_name(entry.product_id))
        record = MovementRecord.from_entry(entry, sequence)
        self.session.add(record)
        self.session.flush()

        logger.info(
            "movement_appended",
            extra={
                "movement_id": str(record.id),
                "product_id": str(entry.product_id),
                "movement_type": entry.movement_type.value,
                "cause": entry.cause.value,
                "quantity": entry.quantity,
                "sequence": sequence,
            },
        )
        return record

    def totals(self, product_id: UUID) -> tuple[int, int]:
        """(total IN, total OUT) for a product."""
        return MovementSelector(self.session).totals(product_id)
