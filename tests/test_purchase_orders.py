"""
Tests for purchase order numbering, totals, persistence and status changes.
"""
import uuid
from datetime import date
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from app.exceptions import DataAccessError, NotFoundError, ValidationError
from app.models import InventoryItem, PurchaseOrder, PurchaseOrderItem, Restaurant
from app.services.purchase_orders import PurchaseOrderService, calculate_totals
from app.utils.timezone import get_local_now


def order_line(ingredient_id, quantity, price, unit="lb"):
    return SimpleNamespace(
        ingredient_id=ingredient_id,
        quantity_ordered=Decimal(str(quantity)),
        unit=unit,
        unit_price=Decimal(str(price)),
    )


def order_data(lines, supplier="Sysco", expected=None, notes=None):
    return SimpleNamespace(
        supplier_name=supplier,
        expected_delivery_date=expected,
        items=lines,
        notes=notes,
    )


@pytest.fixture
def example_order(ingredients):
    return order_data([
        order_line(ingredients["tomato"].id, 10, "2.00"),
        order_line(ingredients["chicken"].id, 3, "5.00"),
    ])


class TestCalculateTotals:
    def test_example_totals(self, ingredients):
        lines, subtotal, tax, total = calculate_totals(
            [order_line(ingredients["tomato"].id, 10, "2.00"), order_line(ingredients["chicken"].id, 3, "5.00")],
            Decimal("0.09"),
        )

        assert [line["line_total"] for line in lines] == [Decimal("20.00"), Decimal("15.00")]
        assert subtotal == Decimal("35.00")
        assert tax == Decimal("3.15")
        assert total == Decimal("38.15")

    def test_line_totals_round_half_up(self):
        lines, subtotal, tax, total = calculate_totals([order_line(None, "0.5", "0.05")], Decimal("0.09"))

        assert lines[0]["line_total"] == Decimal("0.03")
        assert total == subtotal + tax


class TestOrderNumbers:
    def test_sequential_numbers_start_at_0001(self, db, restaurant, ingredients):
        service = PurchaseOrderService(db)
        year = get_local_now().year

        numbers = []
        for _ in range(3):
            result = service.create_purchase_order(
                restaurant.id, order_data([order_line(ingredients["tomato"].id, 1, "1.00")])
            )
            numbers.append(result["purchaseOrder"]["order_number"])

        assert numbers == [f"PO-{year}-0001", f"PO-{year}-0002", f"PO-{year}-0003"]

    def test_numbers_are_per_restaurant(self, db, business, restaurant, ingredients):
        other = Restaurant(business_id=business.id, name="Second Location")
        db.add(other)
        db.commit()

        service = PurchaseOrderService(db)
        service.create_purchase_order(restaurant.id, order_data([order_line(ingredients["tomato"].id, 1, "1")]))

        assert service.generate_order_number(other.id).endswith("-0001")

    def test_sequence_keeps_counting_past_9999(self, db, restaurant, ingredients):
        year = get_local_now().year
        db.add(PurchaseOrder(
            restaurant_id=restaurant.id,
            order_number=f"PO-{year}-9999",
            supplier_name="Sysco",
            order_date=get_local_now(),
        ))
        db.commit()

        service = PurchaseOrderService(db)
        numbers = [
            service.create_purchase_order(
                restaurant.id, order_data([order_line(ingredients["tomato"].id, 1, "1.00")])
            )["purchaseOrder"]["order_number"]
            for _ in range(2)
        ]

        assert numbers == [f"PO-{year}-10000", f"PO-{year}-10001"]

    def test_conflicting_number_is_retried(self, db, restaurant, ingredients, example_order):
        service = PurchaseOrderService(db)
        year = get_local_now().year
        service.create_purchase_order(restaurant.id, example_order)

        # Simulates a concurrent caller that read the same "last number"
        drawn = iter([f"PO-{year}-0001", f"PO-{year}-0002"])
        with patch.object(service, "generate_order_number", side_effect=lambda rid: next(drawn)):
            result = service.create_purchase_order(restaurant.id, example_order)

        assert result["purchaseOrder"]["order_number"] == f"PO-{year}-0002"
        assert db.execute(select(func.count(PurchaseOrder.id))).scalar() == 2

    def test_gives_up_after_max_retries(self, db, restaurant, ingredients, example_order):
        service = PurchaseOrderService(db, max_retries=2)
        year = get_local_now().year
        service.create_purchase_order(restaurant.id, example_order)

        with patch.object(service, "generate_order_number", return_value=f"PO-{year}-0001"):
            with pytest.raises(DataAccessError):
                service.create_purchase_order(restaurant.id, example_order)

        assert db.execute(select(func.count(PurchaseOrder.id))).scalar() == 1


class TestCreatePurchaseOrder:
    def test_example_order(self, db, restaurant, user, example_order):
        result = PurchaseOrderService(db).create_purchase_order(restaurant.id, example_order, created_by=user.id)

        order = result["purchaseOrder"]
        assert order["status"] == "draft"
        assert order["subtotal"] == 35.0
        assert order["tax"] == 3.15
        assert order["total"] == 38.15
        assert len(result["items"]) == 2
        assert all(item["quantity_received"] == 0 for item in result["items"])

    def test_unknown_ingredient_is_not_found(self, db, restaurant, ingredients):
        data = order_data([
            order_line(ingredients["tomato"].id, 1, "1.00"),
            order_line(uuid.uuid4(), 2, "3.00"),
        ])

        with pytest.raises(NotFoundError):
            PurchaseOrderService(db).create_purchase_order(restaurant.id, data)

        assert db.execute(select(func.count(PurchaseOrder.id))).scalar() == 0

    def test_item_failure_removes_order(self, db, restaurant, example_order):
        service = PurchaseOrderService(db)
        failure = IntegrityError("INSERT INTO purchase_order_items", {}, Exception("bad ingredient"))

        with patch.object(service, "_insert_items", side_effect=failure):
            with pytest.raises(DataAccessError) as exc_info:
                service.create_purchase_order(restaurant.id, example_order)

        assert "Failed to create purchase order" in exc_info.value.message
        assert db.execute(select(func.count(PurchaseOrder.id))).scalar() == 0
        assert db.execute(select(func.count(PurchaseOrderItem.id))).scalar() == 0

    def test_failed_rollback_still_surfaces_original_error(self, db, restaurant, example_order):
        service = PurchaseOrderService(db)
        failure = OperationalError("INSERT INTO purchase_order_items", {}, Exception("connection lost"))

        with patch.object(service, "_insert_items", side_effect=failure), \
                patch.object(db, "rollback", side_effect=OperationalError("ROLLBACK", {}, Exception("gone"))):
            with pytest.raises(DataAccessError) as exc_info:
                service.create_purchase_order(restaurant.id, example_order)

        assert "connection lost" in exc_info.value.message

    def test_custom_tax_rate(self, db, restaurant, example_order):
        result = PurchaseOrderService(db, tax_rate="0.10").create_purchase_order(restaurant.id, example_order)

        assert result["purchaseOrder"]["tax"] == 3.5
        assert result["purchaseOrder"]["total"] == 38.5


class TestStatusTransitions:
    @pytest.fixture
    def order_id(self, db, restaurant, example_order):
        result = PurchaseOrderService(db).create_purchase_order(restaurant.id, example_order)
        return uuid.UUID(result["purchaseOrder"]["id"])

    def test_get_and_list(self, db, restaurant, order_id):
        service = PurchaseOrderService(db)

        order = service.get_purchase_order(restaurant.id, order_id)
        assert len(order["items"]) == 2

        assert len(service.list_purchase_orders(restaurant.id)) == 1
        assert service.list_purchase_orders(restaurant.id, status="received") == []

    def test_get_unknown_order(self, db, restaurant):
        with pytest.raises(NotFoundError):
            PurchaseOrderService(db).get_purchase_order(restaurant.id, uuid.uuid4())

    def test_submit_then_receive_stocks_inventory(self, db, restaurant, ingredients, order_id):
        service = PurchaseOrderService(db)

        assert service.mark_ordered(restaurant.id, order_id)["status"] == "ordered"

        received = service.mark_received(restaurant.id, order_id, date(2026, 3, 2))
        assert received["status"] == "received"
        assert received["actual_delivery_date"] == "2026-03-02"
        assert all(item["quantity_received"] == 0 for item in received["items"])

        stock = {
            row.ingredient_id: row
            for row in db.execute(
                select(InventoryItem.ingredient_id, InventoryItem.quantity, InventoryItem.cost_per_unit)
            ).all()
        }
        assert stock[ingredients["tomato"].id].quantity == Decimal("10")
        assert stock[ingredients["chicken"].id].quantity == Decimal("3")
        assert stock[ingredients["tomato"].id].cost_per_unit == Decimal("2.00")
        assert stock[ingredients["chicken"].id].cost_per_unit == Decimal("5.00")

    def test_submit_twice_is_rejected(self, db, restaurant, order_id):
        service = PurchaseOrderService(db)
        service.mark_ordered(restaurant.id, order_id)

        with pytest.raises(ValidationError):
            service.mark_ordered(restaurant.id, order_id)

    def test_cannot_cancel_received_order(self, db, restaurant, order_id):
        service = PurchaseOrderService(db)
        service.mark_received(restaurant.id, order_id)

        with pytest.raises(ValidationError):
            service.cancel(restaurant.id, order_id)

    def test_cancelled_order_cannot_be_received(self, db, restaurant, order_id):
        service = PurchaseOrderService(db)
        assert service.cancel(restaurant.id, order_id)["status"] == "cancelled"

        with pytest.raises(ValidationError):
            service.mark_received(restaurant.id, order_id)
