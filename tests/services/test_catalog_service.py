"""Tests for CatalogService."""

from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from inventory_kernel.domain.dtos import ProductRequest
from inventory_kernel.exceptions import (
    DuplicateSkuError,
    InvalidRequestError,
    ProductNotFoundError,
)
from inventory_kernel.models.inventory_batch import InventoryBatch


class TestCreateProduct:
    def test_create_and_read_back(self, catalog):
        view = catalog.create_product(
            ProductRequest(name="  Clay mug ", price=Decimal("12.5"), sku="MUG-1", description="Blue")
        )

        assert view.name == "Clay mug"
        assert view.is_active
        assert catalog.get_product(view.product_id) == view

    def test_duplicate_sku(self, catalog):
        catalog.create_product(ProductRequest(name="Mug", sku="MUG-1"))

        with pytest.raises(DuplicateSkuError) as exc_info:
            catalog.create_product(ProductRequest(name="Other mug", sku="MUG-1"))

        assert exc_info.value.code == "DUPLICATE_SKU"

    def test_products_without_sku_do_not_collide(self, catalog):
        catalog.create_product(ProductRequest(name="A"))
        catalog.create_product(ProductRequest(name="B"))

        assert len(catalog.list_products()) == 2

    @pytest.mark.parametrize("name", ["", "  "])
    def test_name_required(self, name):
        with pytest.raises(InvalidRequestError):
            ProductRequest(name=name)

    def test_negative_price(self):
        with pytest.raises(InvalidRequestError):
            ProductRequest(name="Mug", price=Decimal("-1"))


class TestUpdateProduct:
    def test_update_fields(self, catalog, make_product):
        mug = make_product(sku="MUG-1")

        view = catalog.update_product(
            mug, ProductRequest(name="Large mug", price=Decimal("15"), sku="MUG-1")
        )

        assert view.name == "Large mug"
        assert view.price == Decimal("15")

    def test_cannot_take_another_products_sku(self, catalog, make_product):
        make_product(sku="MUG-1")
        plate = make_product(sku="PLATE-1")

        with pytest.raises(DuplicateSkuError):
            catalog.update_product(plate, ProductRequest(name="Plate", sku="MUG-1"))

        assert catalog.get_product(plate).sku == "PLATE-1"

    def test_unknown_product(self, catalog):
        with pytest.raises(ProductNotFoundError):
            catalog.update_product(uuid4(), ProductRequest(name="Ghost"))


class TestDeactivateProduct:
    def test_hidden_from_default_listing(self, catalog, make_product):
        mug = make_product(name="Mug")
        make_product(name="Plate")

        catalog.deactivate_product(mug)

        assert [p.name for p in catalog.list_products()] == ["Plate"]
        assert [p.name for p in catalog.list_products(include_inactive=True)] == ["Mug", "Plate"]
        assert not catalog.get_product(mug).is_active

    def test_stock_stays_with_deactivated_product(self, catalog, stocked_product, session):
        mug = stocked_product((4, "2"))
        catalog.deactivate_product(mug)

        batches = session.execute(
            select(InventoryBatch).where(InventoryBatch.product_id == mug)
        ).scalars().all()
        assert [b.quantity_available for b in batches] == [4]
