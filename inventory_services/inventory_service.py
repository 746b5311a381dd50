"""
InventoryService -- stock workflows: purchase, initial stock, adjustment, sale.

Responsibility:
    Entry point for every operation that changes stock.  Each public method
    runs in its own UnitOfWork, locks the affected products, and writes the
    batch changes, movements, documents and cash transaction of the
    operation together.

Architecture position:
    Services -- imperative shell, outermost layer of the kernel.
    Composes BatchStore, MovementLedger, FifoDepletionService and
    CostAttributionService; callers (an HTTP layer, scripts, tests) only see
    request and result DTOs.

Invariants enforced:
    - All-or-nothing: a multi-line sale either records every line or none.
    - Conservation: every batch change is paired with its movement in the
      same transaction, so ledger net == batch stock per product.
    - Sales check aggregate availability per product up front; insufficient
      stock rejects the whole sale before any batch is touched.
    - Sale lines capture their FIFO unit cost at sale time; later receipts
      never change it.

Failure modes:
    - ProductNotFoundError, EventNotFoundError, InsufficientStockError,
      InvalidPurchaseError: raised before any mutation, nothing persisted.
    - TransactionFailureError: the database rejected the transaction after
      the configured number of retries.

Audit relevance:
    Every workflow logs a completion event with the ids it created.  The
    per-batch detail of a negative adjustment is only kept in the log and
    the returned result; the ledger holds one aggregate movement for it.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import TypeVar

from sqlalchemy.orm import Session, sessionmaker

from inventory_engines.valuation import extract_inclusive_tax
from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.dtos import (
    AdjustmentRequest,
    AdjustmentResult,
    CreateBatchRequest,
    DepleteRequest,
    InitialStockRequest,
    PurchaseRequest,
    PurchaseResult,
    ReceiptResult,
    SaleLineResult,
    SaleRequest,
    SaleResult,
)
from inventory_kernel.domain.movements import (
    AdjustmentCause,
    InitialCause,
    MovementCause,
    MovementEntry,
    MovementType,
    PurchaseCause,
    SaleCause,
)
from inventory_kernel.domain.values import ZERO, round_money
from inventory_kernel.exceptions import EventNotFoundError, InsufficientStockError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.event import Event
from inventory_kernel.models.purchase import Purchase, PurchaseLine
from inventory_kernel.models.sale import Sale, SaleLine, SaleLineConsumption
from inventory_kernel.models.transaction import ReferenceType, Transaction, TransactionKind
from inventory_services.batch_store import BatchStore
from inventory_services.cost_attribution_service import CostAttributionService
from inventory_services.depletion_service import FifoDepletionService
from inventory_services.movement_ledger import MovementLedger
from inventory_services.sequence_service import SALE_NUMBER, SequenceService
from inventory_services.unit_of_work import UnitOfWork, retry_transaction

logger = get_logger("services.inventory")

T = TypeVar("T")

INITIAL_STOCK_REASON = "Initial stock"


class _Collaborators:
    """The flush-only services of one unit of work, sharing its session."""

    def __init__(self, session: Session):
        self.sequences = SequenceService(session)
        self.batches = BatchStore(session, self.sequences)
        self.ledger = MovementLedger(session, self.sequences)
        self.depletion = FifoDepletionService(session, self.batches)


class InventoryService:
    """
    Stock workflows.

    Contract:
        Each public method is one transaction.  Results are plain DTOs that
        stay valid after the session is closed.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock,
        *,
        sale_number_prefix: str = "VTA-",
        retries: int = 3,
        backoff_seconds: float = 0.05,
    ):
        self._session_factory = session_factory
        self._clock = clock
        self._sale_number_prefix = sale_number_prefix
        self._retries = retries
        self._backoff_seconds = backoff_seconds
        self._pricing = CostAttributionService()

    def _run(self, operation: str, work: Callable[[UnitOfWork], T]) -> T:
        def attempt() -> T:
            with UnitOfWork(self._session_factory, operation) as uow:
                return work(uow)

        return retry_transaction(
            attempt,
            operation=operation,
            attempts=self._retries,
            backoff_seconds=self._backoff_seconds,
        )

    @staticmethod
    def _record_transaction(
        session: Session,
        kind: TransactionKind,
        amount: Decimal,
        category: str,
        reference_type: ReferenceType,
        reference_id,
        occurred_at,
        description: str | None = None,
    ) -> Transaction:
        transaction = Transaction(
            kind=kind.value,
            amount=amount,
            category=category,
            description=description,
            reference_type=reference_type.value,
            reference_id=reference_id,
            occurred_at=occurred_at,
        )
        session.add(transaction)
        return transaction

    # -------------------------------------------------------------------------
    # Purchases
    # -------------------------------------------------------------------------

    def receive_purchase(self, request: PurchaseRequest) -> PurchaseResult:
        """
        Receive a supplier purchase: one batch and one IN movement per line
        at its landed unit cost, plus one EXPENSE transaction.
        """
        priced = self._pricing.price_purchase(request)

        def work(uow: UnitOfWork) -> PurchaseResult:
            session = uow.session
            uow.lock_products(line.product_id for line in priced)
            svc = _Collaborators(session)
            received_at = request.purchased_at or self._clock.now()

            subtotal = round_money(
                sum(
                    (line.unit_cost_source * request.exchange_rate * line.quantity
                     for line in priced),
                    ZERO,
                )
            )
            total = round_money(sum((line.line_total for line in priced), ZERO))

            purchase = Purchase(
                currency=request.currency,
                exchange_rate=request.exchange_rate,
                freight_total=request.freight_total,
                subtotal=subtotal,
                total=total,
                notes=request.notes,
                purchased_at=received_at,
            )
            session.add(purchase)
            session.flush()

            batch_ids = []
            movement_ids = []
            for line_number, line in enumerate(priced, start=1):
                purchase_line = PurchaseLine(
                    purchase_id=purchase.id,
                    product_id=line.product_id,
                    line_number=line_number,
                    quantity=line.quantity,
                    unit_cost_source=line.unit_cost_source,
                    freight_per_unit=line.freight_per_unit,
                    landed_unit_cost=line.landed_unit_cost,
                    line_total=line.line_total,
                )
                session.add(purchase_line)
                session.flush()

                batch_id = svc.batches.create_batch(
                    CreateBatchRequest(
                        product_id=line.product_id,
                        quantity=line.quantity,
                        unit_cost=line.landed_unit_cost,
                        received_at=received_at,
                        cause=MovementCause.PURCHASE,
                        purchase_line_id=purchase_line.id,
                    )
                )
                movement = svc.ledger.append(
                    MovementEntry(
                        product_id=line.product_id,
                        movement_type=MovementType.IN,
                        quantity=line.quantity,
                        detail=PurchaseCause(
                            purchase_id=purchase.id,
                            purchase_line_id=purchase_line.id,
                            batch_id=batch_id,
                        ),
                        reason=request.notes,
                        occurred_at=received_at,
                    )
                )
                batch_ids.append(batch_id)
                movement_ids.append(movement.id)

            self._record_transaction(
                session,
                TransactionKind.EXPENSE,
                total,
                "purchase",
                ReferenceType.PURCHASE,
                purchase.id,
                received_at,
                description=f"Purchase of {len(priced)} line(s) in {request.currency}",
            )
            session.flush()

            logger.info(
                "purchase_received",
                extra={
                    "purchase_id": str(purchase.id),
                    "line_count": len(priced),
                    "subtotal": str(subtotal),
                    "total": str(total),
                },
            )
            return PurchaseResult(
                purchase_id=purchase.id,
                lines=priced,
                batch_ids=tuple(batch_ids),
                movement_ids=tuple(movement_ids),
                subtotal=subtotal,
                total=total,
            )

        return self._run("receive_purchase", work)

    # -------------------------------------------------------------------------
    # Initial stock and adjustments
    # -------------------------------------------------------------------------

    def add_initial_stock(self, request: InitialStockRequest) -> ReceiptResult:
        """Record opening stock; unit cost is 0 unless supplied."""
        unit_cost = request.unit_cost if request.unit_cost is not None else ZERO

        def work(uow: UnitOfWork) -> ReceiptResult:
            uow.lock_product(request.product_id)
            svc = _Collaborators(uow.session)
            received_at = request.received_at or self._clock.now()

            batch_id = svc.batches.create_batch(
                CreateBatchRequest(
                    product_id=request.product_id,
                    quantity=request.quantity,
                    unit_cost=unit_cost,
                    received_at=received_at,
                    cause=MovementCause.INITIAL,
                )
            )
            movement = svc.ledger.append(
                MovementEntry(
                    product_id=request.product_id,
                    movement_type=MovementType.IN,
                    quantity=request.quantity,
                    detail=InitialCause(batch_id=batch_id),
                    reason=request.reason or INITIAL_STOCK_REASON,
                    occurred_at=received_at,
                )
            )
            return ReceiptResult(
                batch_id=batch_id,
                movement_id=movement.id,
                quantity=request.quantity,
                unit_cost=unit_cost,
            )

        return self._run("add_initial_stock", work)

    def adjust_stock(self, request: AdjustmentRequest) -> AdjustmentResult:
        """
        Apply a physical count correction.

        IN creates a zero-cost batch.  OUT depletes FIFO and writes a single
        aggregate OUT movement; the batches touched are returned and logged.
        """

        def work(uow: UnitOfWork) -> AdjustmentResult:
            uow.lock_product(request.product_id)
            svc = _Collaborators(uow.session)
            now = self._clock.now()

            if request.movement_type is MovementType.IN:
                batch_id = svc.batches.create_batch(
                    CreateBatchRequest(
                        product_id=request.product_id,
                        quantity=request.quantity,
                        unit_cost=ZERO,
                        received_at=now,
                        cause=MovementCause.ADJUSTMENT,
                    )
                )
                detail = AdjustmentCause(batch_id=batch_id)
                consumptions = ()
            else:
                depletion = svc.depletion.deplete(
                    DepleteRequest(product_id=request.product_id, quantity=request.quantity)
                )
                batch_id = None
                detail = AdjustmentCause()
                consumptions = depletion.consumptions
                logger.info(
                    "adjustment_depleted",
                    extra={
                        "product_id": str(request.product_id),
                        "quantity": request.quantity,
                        "consumptions": [
                            {
                                "batch_id": str(c.batch_id),
                                "quantity_taken": c.quantity_taken,
                                "unit_cost": str(c.unit_cost),
                            }
                            for c in consumptions
                        ],
                    },
                )

            movement = svc.ledger.append(
                MovementEntry(
                    product_id=request.product_id,
                    movement_type=request.movement_type,
                    quantity=request.quantity,
                    detail=detail,
                    reason=request.reason,
                    occurred_at=now,
                )
            )
            return AdjustmentResult(
                product_id=request.product_id,
                movement_type=request.movement_type,
                quantity=request.quantity,
                movement_id=movement.id,
                new_stock=svc.batches.current_stock(request.product_id),
                batch_id=batch_id,
                consumptions=consumptions,
            )

        return self._run("adjust_stock", work)

    # -------------------------------------------------------------------------
    # Sales
    # -------------------------------------------------------------------------

    def record_sale(self, request: SaleRequest) -> SaleResult:
        """
        Record a sale of one or more lines.

        Prices are tax-inclusive: the tax is extracted from the discounted
        amount and shipping is added on top of it.
        """

        def work(uow: UnitOfWork) -> SaleResult:
            session = uow.session
            if request.event_id is not None and session.get(Event, request.event_id) is None:
                raise EventNotFoundError(str(request.event_id))

            needed = request.quantity_by_product()
            uow.lock_products(needed)
            svc = _Collaborators(session)

            for product_id, quantity in sorted(needed.items(), key=lambda item: str(item[0])):
                available = svc.batches.current_stock(product_id)
                if quantity > available:
                    logger.info(
                        "sale_rejected_insufficient_stock",
                        extra={
                            "product_id": str(product_id),
                            "requested": quantity,
                            "available": available,
                        },
                    )
                    raise InsufficientStockError(str(product_id), quantity, available)

            sold_at = request.sold_at or self._clock.now()
            subtotal = sum((line.gross_amount for line in request.lines), ZERO)
            discount = sum((line.discount for line in request.lines), ZERO) + request.discount
            taxable = subtotal - discount
            tax = extract_inclusive_tax(taxable, request.tax_rate)
            total = round_money(taxable + request.shipping_cost)

            sequence = svc.sequences.next_value(SALE_NUMBER)
            sale_number = f"{self._sale_number_prefix}{sequence:05d}"
            sale = Sale(
                sale_number=sale_number,
                sequence=sequence,
                event_id=request.event_id,
                customer_ref=request.customer_ref,
                account_ref=request.account_ref,
                subtotal=round_money(subtotal),
                discount=round_money(discount),
                tax_rate=request.tax_rate,
                tax=tax,
                shipping_cost=round_money(request.shipping_cost),
                total=total,
                payment_method=request.payment_method,
                notes=request.notes,
                sold_at=sold_at,
            )
            session.add(sale)
            session.flush()

            line_results = []
            for line_number, line in enumerate(request.lines, start=1):
                depletion = svc.depletion.deplete(
                    DepleteRequest(product_id=line.product_id, quantity=line.quantity)
                )
                # rows are linked by foreign key only; sale lines are immutable
                # once flushed and must not be touched through relationships
                sale_line = SaleLine(
                    sale_id=sale.id,
                    product_id=line.product_id,
                    line_number=line_number,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    discount=line.discount,
                    unit_cost=depletion.average_unit_cost,
                    cost_total=depletion.total_cost,
                    line_total=line.line_total,
                )
                session.add(sale_line)
                session.flush()
                for consumption in depletion.consumptions:
                    session.add(
                        SaleLineConsumption(
                            sale_line_id=sale_line.id,
                            batch_id=consumption.batch_id,
                            quantity_taken=consumption.quantity_taken,
                            unit_cost=consumption.unit_cost,
                        )
                    )

                movement = svc.ledger.append(
                    MovementEntry(
                        product_id=line.product_id,
                        movement_type=MovementType.OUT,
                        quantity=line.quantity,
                        detail=SaleCause(sale_id=sale.id, sale_line_id=sale_line.id),
                        reason=f"Sale {sale_number}",
                        occurred_at=sold_at,
                    )
                )
                line_results.append(
                    SaleLineResult(
                        sale_line_id=sale_line.id,
                        product_id=line.product_id,
                        quantity=line.quantity,
                        unit_price=line.unit_price,
                        unit_cost=depletion.average_unit_cost,
                        cost_total=depletion.total_cost,
                        line_total=line.line_total,
                        movement_id=movement.id,
                        consumptions=depletion.consumptions,
                    )
                )

            self._record_transaction(
                session,
                TransactionKind.INCOME,
                total,
                "sale",
                ReferenceType.SALE,
                sale.id,
                sold_at,
                description=f"Sale {sale_number}",
            )
            session.flush()

            logger.info(
                "sale_recorded",
                extra={
                    "sale_id": str(sale.id),
                    "sale_number": sale_number,
                    "line_count": len(line_results),
                    "total": str(total),
                    "tax": str(tax),
                },
            )
            return SaleResult(
                sale_id=sale.id,
                sale_number=sale_number,
                subtotal=round_money(subtotal),
                discount=round_money(discount),
                tax=tax,
                shipping_cost=round_money(request.shipping_cost),
                total=total,
                lines=tuple(line_results),
            )

        return self._run("record_sale", work)
