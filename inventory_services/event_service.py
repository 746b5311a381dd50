"""
EventService -- exhibitions and pop-up events.

Responsibility:
    Creates events and records standalone expenses tagged to them.  Sales
    are tagged to an event through ``SaleRequest.event_id``; the event's
    profit and ROI are computed on read by ReportingService.

Architecture position:
    Services -- imperative shell.  Each write runs in its own UnitOfWork.

Failure modes:
    - EventNotFoundError when an expense names an unknown event.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.dtos import EventRequest, ExpenseRequest
from inventory_kernel.exceptions import EventNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.event import Event
from inventory_kernel.models.transaction import ReferenceType, Transaction, TransactionKind
from inventory_services.unit_of_work import UnitOfWork, retry_transaction

logger = get_logger("services.events")


class EventService:
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock,
        *,
        retries: int = 3,
        backoff_seconds: float = 0.05,
    ):
        self._session_factory = session_factory
        self._clock = clock
        self._retries = retries
        self._backoff_seconds = backoff_seconds

    def _run(self, operation, work):
        def attempt():
            with UnitOfWork(self._session_factory, operation) as uow:
                return work(uow.session)

        return retry_transaction(
            attempt,
            operation=operation,
            attempts=self._retries,
            backoff_seconds=self._backoff_seconds,
        )

    def create_event(self, request: EventRequest) -> UUID:
        def work(session: Session) -> UUID:
            event = Event(
                name=request.name,
                location=request.location,
                starts_at=request.starts_at,
                ends_at=request.ends_at,
                fixed_cost=request.fixed_cost,
                notes=request.notes,
            )
            session.add(event)
            session.flush()
            logger.info(
                "event_created",
                extra={"event_id": str(event.id), "fixed_cost": str(request.fixed_cost)},
            )
            return event.id

        return self._run("create_event", work)

    def record_expense(self, request: ExpenseRequest) -> UUID:
        """Record an EXPENSE transaction tagged to an event; returns its id."""

        def work(session: Session) -> UUID:
            if session.get(Event, request.event_id) is None:
                raise EventNotFoundError(str(request.event_id))
            transaction = Transaction(
                kind=TransactionKind.EXPENSE.value,
                amount=request.amount,
                category="event",
                description=request.description,
                reference_type=ReferenceType.EVENT.value,
                reference_id=request.event_id,
                occurred_at=request.occurred_at or self._clock.now(),
            )
            session.add(transaction)
            session.flush()
            logger.info(
                "event_expense_recorded",
                extra={
                    "event_id": str(request.event_id),
                    "transaction_id": str(transaction.id),
                    "amount": str(request.amount),
                },
            )
            return transaction.id

        return self._run("record_expense", work)
