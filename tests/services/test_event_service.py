"""Tests for EventService and the event figures built by ReportingService."""

from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from inventory_kernel.domain.dtos import (
    EventRequest,
    EventStatus,
    ExpenseRequest,
    SaleLineRequest,
    SaleRequest,
)
from inventory_kernel.exceptions import (
    EventNotFoundError,
    InvalidCostError,
    InvalidRequestError,
)
from inventory_kernel.models.transaction import Transaction


@pytest.fixture
def fair(events, clock):
    """An event running from a day before to a day after the test clock."""
    return events.create_event(
        EventRequest(
            name="Craft fair",
            location="Plaza",
            starts_at=clock.now() - timedelta(days=1),
            ends_at=clock.now() + timedelta(days=1),
            fixed_cost=Decimal("200"),
        )
    )


class TestCreateEvent:
    def test_window_must_not_be_reversed(self, clock):
        with pytest.raises(InvalidRequestError):
            EventRequest(name="Fair", starts_at=clock.now(), ends_at=clock.now() - timedelta(hours=1))

    def test_negative_fixed_cost(self, clock):
        with pytest.raises(InvalidCostError):
            EventRequest(
                name="Fair", starts_at=clock.now(), ends_at=clock.now(), fixed_cost=Decimal("-5")
            )

    def test_new_event_has_no_figures(self, reporting, fair):
        summary = reporting.event_summary(fair)

        assert summary.status is EventStatus.ACTIVE
        assert summary.sales_count == 0
        assert summary.total_expenses == Decimal("200.00")
        assert summary.net_profit == Decimal("-200.00")
        assert summary.roi == Decimal("-100.00")


class TestRecordExpense:
    def test_expense_tagged_to_event(self, events, fair, session):
        transaction_id = events.record_expense(
            ExpenseRequest(event_id=fair, amount=Decimal("100"), description="Booth rental")
        )

        transaction = session.get(Transaction, transaction_id)
        assert transaction.kind == "expense"
        assert transaction.category == "event"
        assert transaction.reference_type == "event"
        assert transaction.reference_id == fair

    def test_unknown_event(self, events):
        with pytest.raises(EventNotFoundError):
            events.record_expense(ExpenseRequest(event_id=uuid4(), amount=Decimal("1")))

    def test_amount_must_be_positive(self):
        with pytest.raises(InvalidCostError):
            ExpenseRequest(event_id=uuid4(), amount=Decimal("0"))


class TestEventSummary:
    def test_profit_and_roi(self, inventory, events, reporting, stocked_product, fair):
        mug = stocked_product((20, "10"))
        inventory.record_sale(
            SaleRequest(
                lines=(SaleLineRequest(product_id=mug, quantity=10, unit_price=Decimal("115")),),
                tax_rate=Decimal("0.15"),
                event_id=fair,
            )
        )
        # untagged sales do not count towards the event
        inventory.record_sale(
            SaleRequest(lines=(SaleLineRequest(product_id=mug, quantity=1, unit_price=Decimal("50")),))
        )
        events.record_expense(ExpenseRequest(event_id=fair, amount=Decimal("100")))

        summary = reporting.event_summary(fair)

        assert summary.sales_count == 1
        assert summary.total_sales == Decimal("1150.00")
        assert summary.total_tax == Decimal("150.00")
        assert summary.gross_profit == Decimal("900.00")
        assert summary.total_expenses == Decimal("300.00")
        assert summary.net_profit == Decimal("600.00")
        assert summary.roi == Decimal("200.00")

    def test_status_follows_the_clock(self, reporting, fair, clock):
        clock.advance(2 * 24 * 3600)

        assert reporting.event_summary(fair).status is EventStatus.COMPLETED

    def test_unknown_event(self, reporting):
        with pytest.raises(EventNotFoundError):
            reporting.event_summary(uuid4())

    def test_list_events_newest_first(self, events, reporting, fair, clock):
        later = events.create_event(
            EventRequest(
                name="Winter market",
                starts_at=clock.now() + timedelta(days=30),
                ends_at=clock.now() + timedelta(days=32),
            )
        )

        summaries = reporting.list_events()

        assert [s.event_id for s in summaries] == [later, fair]
        assert summaries[0].status is EventStatus.PLANNED
        assert summaries[0].roi == Decimal("0.00")
