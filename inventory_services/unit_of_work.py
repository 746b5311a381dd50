"""
UnitOfWork -- transaction boundary for stock-affecting operations.

Responsibility:
    Owns one SQLAlchemy session per operation: commits when the block
    finishes, rolls back when anything inside it raises, and always closes
    the session.  Provides the product row lock that serializes concurrent
    stock mutations of the same product.

Architecture position:
    Services -- imperative shell.  Used by InventoryService, CatalogService
    and EventService; every flush-only collaborator runs inside one.

Invariants enforced:
    - All-or-nothing: either every row written in the block commits or none
      does.  A failed operation leaves batches, movements, sales and
      transactions unchanged.
    - Lock order: multi-product operations lock products in ascending id
      order so two operations never wait on each other in a cycle.

Failure modes:
    - TransactionFailureError (retryable) wraps any SQLAlchemyError raised
      inside the block or by the commit itself.
    - Domain errors (InventoryKernelError subclasses) propagate unchanged
      after the rollback.
    - ProductNotFoundError from ``lock_product`` for a missing or inactive
      product.

Usage:
    with UnitOfWork(session_factory, "record_sale") as uow:
        uow.lock_products(product_ids)
        ...  # flush-only services on uow.session
"""

from __future__ import annotations

import time
from collections.abc import Callable, Generator, Iterable
from contextlib import contextmanager
from typing import TypeVar
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.exceptions import ProductNotFoundError, TransactionFailureError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.product import Product

logger = get_logger("services.unit_of_work")

T = TypeVar("T")


class UnitOfWork:
    """
    Context manager wrapping one database transaction.

    Contract:
        ``session`` is only valid between ``__enter__`` and ``__exit__``.
        Callers must not commit or roll back the session themselves.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        operation: str,
    ):
        self._session_factory = session_factory
        self.operation = operation
        self._session: Session | None = None
        self._log_context = None

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("UnitOfWork session used outside its with-block")
        return self._session

    def __enter__(self) -> UnitOfWork:
        self._log_context = LogContext.bind(
            correlation_id=str(uuid4()),
            operation=self.operation,
        )
        self._log_context.__enter__()
        self._session = self._session_factory()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        session = self.session
        try:
            if exc_type is None:
                try:
                    session.commit()
                except SQLAlchemyError as commit_error:
                    session.rollback()
                    logger.warning(
                        "unit_of_work_commit_failed",
                        extra={"error_type": type(commit_error).__name__},
                    )
                    raise TransactionFailureError(
                        self.operation, str(commit_error)
                    ) from commit_error
                logger.debug("unit_of_work_committed")
                return False

            session.rollback()
            logger.info(
                "unit_of_work_rolled_back",
                extra={"error_type": exc_type.__name__},
            )
            if isinstance(exc, SQLAlchemyError):
                raise TransactionFailureError(self.operation, str(exc)) from exc
            return False
        finally:
            session.close()
            self._session = None
            self._log_context.__exit__(None, None, None)

    def lock_product(self, product_id: UUID) -> Product:
        """
        Take the row lock on an active product (``SELECT ... FOR UPDATE``).

        The product id is added to the log context until the unit ends.

        Raises:
            ProductNotFoundError: if the product is missing or inactive.
        """
        product = self._lock(product_id)
        LogContext.set(product_id=str(product_id))
        return product

    def lock_products(self, product_ids: Iterable[UUID]) -> list[Product]:
        """Lock several products in ascending id order."""
        ordered = sorted(set(product_ids), key=str)
        if len(ordered) == 1:
            return [self.lock_product(ordered[0])]
        return [self._lock(pid) for pid in ordered]

    def _lock(self, product_id: UUID) -> Product:
        product = self.session.execute(
            select(Product)
            .where(Product.id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if product is None or not product.is_active:
            raise ProductNotFoundError(str(product_id))
        return product

@contextmanager
def read_session(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """A session for reporting queries; never commits and takes no locks."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def retry_transaction(
    work: Callable[[], T],
    *,
    operation: str,
    attempts: int = 3,
    backoff_seconds: float = 0.05,
) -> T:
    """
    Run ``work`` and re-run it when it fails with TransactionFailureError.

    Each attempt must open its own UnitOfWork so a retry starts from a
    fresh transaction.  Domain errors are never retried.
    """
    for attempt in range(1, max(1, attempts)):
        try:
            return work()
        except TransactionFailureError as exc:
            logger.warning(
                "transaction_retry",
                extra={
                    "operation": operation,
                    "attempt": attempt,
                    "reason": exc.reason,
                },
            )
            time.sleep(backoff_seconds * attempt)
    return work()
