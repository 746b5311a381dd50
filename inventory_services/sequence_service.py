"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Provides strictly increasing sequence numbers for per-product batch and
    movement order and for sale numbers.  Uses the ``sequence_counters``
    table with row-level locking (``SELECT ... FOR UPDATE``) so concurrent
    writers never draw the same value.

Architecture position:
    Services -- imperative shell infrastructure.
    Called by BatchStore, MovementLedger and the sale workflow.

Invariants enforced:
    - Monotonicity: the locked counter row is the sole source of truth for
      the next value.  Aggregate max-plus-one over the data tables is never
      used.
    - Transactional: an increment only becomes visible when the caller's
      transaction commits; a rollback returns the value.

Failure modes:
    - IntegrityError when two transactions create the same counter at the
      same time.  The unit of work turns it into TransactionFailureError and
      the operation is retried, by which time the counter exists.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.sequence_counter import SequenceCounter

logger = get_logger("services.sequence")

SALE_NUMBER = "sale_number"


def batch_sequence_name(product_id: UUID) -> str:
    return f"batch:{product_id}"


def movement_sequence_name(product_id: UUID) -> str:
    return f"movement:{product_id}"


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Non-goals:
        - Does NOT call ``session.commit()``; the caller controls boundaries.

    Usage:
        with UnitOfWork(factory, "record_sale") as uow:
            number = SequenceService(uow.session).next_value(SALE_NUMBER)
    """

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        # populate_existing refreshes a cached counter without expiring
        # the session's other pending state
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Lock the named counter (creating it on first use), increment it and
        return the new value, which is always > 0.
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            counter = SequenceCounter(name=sequence_name, current_value=1)
            self._session.add(counter)
            self._session.flush()
            logger.debug(
                "sequence_created",
                extra={"sequence_name": sequence_name, "value": 1},
            )
            return 1

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int:
        """Current value of a sequence without incrementing; 0 if unused."""
        value = self._session.execute(
            select(SequenceCounter.current_value).where(
                SequenceCounter.name == sequence_name
            )
        ).scalar_one_or_none()
        return value or 0
