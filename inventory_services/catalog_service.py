"""
CatalogService -- product catalog maintenance.

Responsibility:
    Creates, updates, deactivates and reads products.  Products are never
    hard-deleted: batches and movements keep referencing them.

Architecture position:
    Services -- imperative shell.  Each write runs in its own UnitOfWork.

Failure modes:
    - DuplicateSkuError when another product already carries the SKU.
    - ProductNotFoundError for an unknown product id.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.domain.dtos import ProductRequest, ProductView
from inventory_kernel.exceptions import DuplicateSkuError, ProductNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.product import Product
from inventory_services.unit_of_work import UnitOfWork, read_session, retry_transaction

logger = get_logger("services.catalog")


def _to_view(product: Product) -> ProductView:
    return ProductView(
        product_id=product.id,
        name=product.name,
        price=product.price,
        sku=product.sku,
        description=product.description,
        is_active=product.is_active,
    )


class CatalogService:
    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        retries: int = 3,
        backoff_seconds: float = 0.05,
    ):
        self._session_factory = session_factory
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

    @staticmethod
    def _check_sku(session: Session, sku: str | None, exclude: UUID | None = None) -> None:
        if sku is None:
            return
        query = select(Product.id).where(Product.sku == sku)
        if exclude is not None:
            query = query.where(Product.id != exclude)
        if session.execute(query).first() is not None:
            raise DuplicateSkuError(sku)

    @staticmethod
    def _load(session: Session, product_id: UUID) -> Product:
        product = session.get(Product, product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return product

    def create_product(self, request: ProductRequest) -> ProductView:
        def work(session: Session) -> ProductView:
            self._check_sku(session, request.sku)
            product = Product(
                name=request.name,
                price=request.price,
                sku=request.sku,
                description=request.description,
                is_active=True,
            )
            session.add(product)
            session.flush()
            logger.info(
                "product_created",
                extra={"product_id": str(product.id), "sku": request.sku},
            )
            return _to_view(product)

        return self._run("create_product", work)

    def update_product(self, product_id: UUID, request: ProductRequest) -> ProductView:
        """Replace the catalog fields of a product; stock is not affected."""

        def work(session: Session) -> ProductView:
            product = self._load(session, product_id)
            self._check_sku(session, request.sku, exclude=product_id)
            product.name = request.name
            product.price = request.price
            product.sku = request.sku
            product.description = request.description
            session.flush()
            logger.info("product_updated", extra={"product_id": str(product_id)})
            return _to_view(product)

        return self._run("update_product", work)

    def deactivate_product(self, product_id: UUID) -> ProductView:
        """
        Soft-delete a product.  Its batches and movements stay; it can no
        longer receive or sell stock.
        """

        def work(session: Session) -> ProductView:
            product = self._load(session, product_id)
            product.is_active = False
            session.flush()
            logger.info("product_deactivated", extra={"product_id": str(product_id)})
            return _to_view(product)

        return self._run("deactivate_product", work)

    def get_product(self, product_id: UUID) -> ProductView:
        with read_session(self._session_factory) as session:
            return _to_view(self._load(session, product_id))

    def list_products(self, include_inactive: bool = False) -> list[ProductView]:
        with read_session(self._session_factory) as session:
            query = select(Product).order_by(Product.name)
            if not include_inactive:
                query = query.where(Product.is_active.is_(True))
            return [_to_view(product) for product in session.execute(query).scalars()]
