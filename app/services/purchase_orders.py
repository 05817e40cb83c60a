"""
Purchase orders: numbering, totals and persistence of an order with its lines.
"""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from tenacity import retry, retry_if_exception, stop_after_attempt

from app.config import settings
from app.exceptions import DataAccessError, InventoryAPIError, NotFoundError, ValidationError
from app.models import PurchaseOrder, PurchaseOrderItem
from app.services.inventory import InventoryService, StockLine
from app.utils.money import round2, to_decimal
from app.utils.timezone import get_local_now, get_local_today

logger = logging.getLogger(__name__)

OPEN_STATUSES = ("draft", "ordered")
ORDER_NUMBER_CONSTRAINT = "uq_purchase_orders_restaurant_number"


def calculate_totals(items, tax_rate) -> Tuple[List[dict], Decimal, Decimal, Decimal]:
    """
    Line totals, subtotal, tax and grand total, each rounded to cents.

    Returns:
        (lines, subtotal, tax, total)
    """
    lines = []
    subtotal = Decimal("0.00")
    for item in items:
        quantity = to_decimal(item.quantity_ordered)
        unit_price = to_decimal(item.unit_price)
        line_total = round2(quantity * unit_price)
        subtotal += line_total
        lines.append({
            "ingredient_id": item.ingredient_id,
            "quantity_ordered": quantity,
            "unit": item.unit,
            "unit_price": unit_price,
            "line_total": line_total,
        })

    subtotal = round2(subtotal)
    tax = round2(subtotal * to_decimal(tax_rate))
    return lines, subtotal, tax, subtotal + tax


def _is_order_number_conflict(error: BaseException) -> bool:
    if not isinstance(error, IntegrityError):
        return False
    message = str(error.orig)
    return ORDER_NUMBER_CONSTRAINT in message or "purchase_orders.order_number" in message


def _log_order_number_retry(retry_state):
    logger.warning(
        f"Order number already taken, retrying (attempt {retry_state.attempt_number}): "
        f"{retry_state.outcome.exception().orig}"
    )


def serialize_order(order: PurchaseOrder) -> dict:
    return {
        "id": str(order.id),
        "order_number": order.order_number,
        "status": order.status,
        "supplier_name": order.supplier_name,
        "order_date": order.order_date.isoformat() if order.order_date else None,
        "expected_delivery_date": order.expected_delivery_date.isoformat() if order.expected_delivery_date else None,
        "actual_delivery_date": order.actual_delivery_date.isoformat() if order.actual_delivery_date else None,
        "subtotal": float(order.subtotal),
        "tax": float(order.tax),
        "total": float(order.total),
        "notes": order.notes,
        "created_at": order.created_at.isoformat() if order.created_at else None,
    }


def serialize_order_item(item: PurchaseOrderItem) -> dict:
    return {
        "id": str(item.id),
        "ingredient_id": str(item.ingredient_id),
        "quantity_ordered": float(item.quantity_ordered),
        "quantity_received": float(item.quantity_received or 0),
        "unit": item.unit,
        "unit_price": float(item.unit_price),
        "line_total": float(item.line_total),
    }


class PurchaseOrderService:

    def __init__(self, db: Session, tax_rate=None, max_retries: Optional[int] = None):
        self.db = db
        self.tax_rate = to_decimal(settings.TAX_RATE if tax_rate is None else tax_rate)
        self.max_retries = max_retries or settings.ORDER_NUMBER_MAX_RETRIES

    def generate_order_number(self, restaurant_id: UUID, year: Optional[int] = None) -> str:
        """Next PO-<year>-<seq> for the restaurant, starting at 0001 each year"""
        year = year or get_local_now().year
        prefix = f"PO-{year}-"

        # Longer sequences rank first so PO-<year>-10000 sorts above PO-<year>-9999
        last_number = self.db.execute(
            select(PurchaseOrder.order_number)
            .where(
                PurchaseOrder.restaurant_id == restaurant_id,
                PurchaseOrder.order_number.like(f"{prefix}%"),
            )
            .order_by(func.length(PurchaseOrder.order_number).desc(), PurchaseOrder.order_number.desc())
            .limit(1)
        ).scalar()

        if not last_number:
            return f"{prefix}0001"

        last_sequence = int(last_number.rsplit("-", 1)[-1])
        return f"{prefix}{last_sequence + 1:04d}"

    def create_purchase_order(self, restaurant_id: UUID, data, created_by: Optional[UUID] = None) -> dict:
        """
        Create a draft order and its lines in one transaction.

        Two concurrent callers can draw the same order number; the unique
        constraint rejects the second insert and the number is drawn again.
        """
        if not restaurant_id:
            raise ValidationError("Restaurant ID is required")

        lines, subtotal, tax, total = calculate_totals(data.items, self.tax_rate)

        try:
            InventoryService(self.db).ensure_ingredients_exist(line["ingredient_id"] for line in lines)
            order = self._insert_order(restaurant_id, data, subtotal, tax, total, created_by)
        except IntegrityError as e:
            logger.error(f"Error creating purchase order: {e}", exc_info=True)
            raise DataAccessError(f"Failed to create purchase order: {e.orig}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating purchase order: {e}", exc_info=True)
            raise DataAccessError(f"Failed to create purchase order: {e}") from e

        try:
            items = self._insert_items(order, lines)
            self.db.commit()
        except SQLAlchemyError as e:
            self._undo_order(order.order_number, e)
            raise DataAccessError(f"Failed to create purchase order: {e}") from e

        logger.info(f"Created purchase order {order.order_number} for restaurant {restaurant_id} (total {total})")
        return {
            "purchaseOrder": serialize_order(order),
            "items": [serialize_order_item(item) for item in items],
        }

    def _insert_order(self, restaurant_id: UUID, data, subtotal, tax, total, created_by) -> PurchaseOrder:
        """Flush the order header, drawing a fresh number on every attempt"""

        @retry(
            stop=stop_after_attempt(self.max_retries),
            retry=retry_if_exception(_is_order_number_conflict),
            before_sleep=_log_order_number_retry,
            reraise=True
        )
        def _flush_order():
            order = PurchaseOrder(
                restaurant_id=restaurant_id,
                order_number=self.generate_order_number(restaurant_id),
                status="draft",
                supplier_name=data.supplier_name,
                order_date=get_local_now(),
                expected_delivery_date=data.expected_delivery_date,
                subtotal=subtotal,
                tax=tax,
                total=total,
                notes=data.notes,
                created_by=created_by,
            )
            self.db.add(order)
            try:
                self.db.flush()
            except IntegrityError:
                self.db.rollback()
                raise
            return order

        return _flush_order()

    def _insert_items(self, order: PurchaseOrder, lines: List[dict]) -> List[PurchaseOrderItem]:
        items = [
            PurchaseOrderItem(
                purchase_order_id=order.id,
                ingredient_id=line["ingredient_id"],
                quantity_ordered=line["quantity_ordered"],
                quantity_received=0,
                unit=line["unit"],
                unit_price=line["unit_price"],
                line_total=line["line_total"],
            )
            for line in lines
        ]
        self.db.add_all(items)
        self.db.flush()
        return items

    def _undo_order(self, order_number: str, error: Exception):
        """Discard the uncommitted order row after its lines failed"""
        try:
            self.db.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(
                f"Rollback of purchase order {order_number} failed: {rollback_error}; "
                f"original error: {error}",
                exc_info=True,
            )
            return
        logger.warning(f"Rolled back purchase order {order_number} after line insert failed: {error}")

    def list_purchase_orders(self, restaurant_id: UUID, status: Optional[str] = None) -> List[dict]:
        query = (
            select(PurchaseOrder)
            .options(selectinload(PurchaseOrder.items))
            .where(PurchaseOrder.restaurant_id == restaurant_id)
        )
        if status:
            query = query.where(PurchaseOrder.status == status)
        query = query.order_by(PurchaseOrder.order_date.desc())

        try:
            orders = self.db.execute(query).scalars().all()
        except SQLAlchemyError as e:
            logger.error(f"Error listing purchase orders: {e}", exc_info=True)
            raise DataAccessError(str(e)) from e

        return [
            {**serialize_order(order), "items": [serialize_order_item(item) for item in order.items]}
            for order in orders
        ]

    def get_purchase_order(self, restaurant_id: UUID, order_id: UUID) -> dict:
        order = self._get(restaurant_id, order_id)
        return {**serialize_order(order), "items": [serialize_order_item(item) for item in order.items]}

    def mark_ordered(self, restaurant_id: UUID, order_id: UUID) -> dict:
        """draft -> ordered"""
        order = self._get(restaurant_id, order_id)
        if order.status != "draft":
            raise ValidationError(f"Cannot submit purchase order with status: {order.status}")

        order.status = "ordered"
        self._commit(f"Failed to submit purchase order {order.order_number}")
        logger.info(f"Purchase order {order.order_number} submitted")
        return serialize_order(order)

    def mark_received(self, restaurant_id: UUID, order_id: UUID, actual_delivery_date: Optional[date] = None) -> dict:
        """
        Record delivery: every line's ordered quantity is stocked in at its
        unit price, and the order moves to received with its actual delivery
        date. quantity_received on the lines is left as written at creation.
        """
        order = self._get(restaurant_id, order_id)
        if order.status not in OPEN_STATUSES:
            raise ValidationError(f"Cannot receive purchase order with status: {order.status}")

        try:
            InventoryService(self.db).stock_in(
                restaurant_id,
                [
                    StockLine(
                        ingredient_id=item.ingredient_id,
                        quantity=item.quantity_ordered,
                        unit=item.unit,
                        cost_per_unit=item.unit_price,
                    )
                    for item in order.items
                ],
            )
            order.status = "received"
            order.actual_delivery_date = actual_delivery_date or get_local_today()
            self.db.commit()
        except InventoryAPIError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error receiving purchase order {order_id}: {e}", exc_info=True)
            raise DataAccessError(f"Failed to receive purchase order: {e}") from e

        logger.info(f"Purchase order {order.order_number} received")
        return {**serialize_order(order), "items": [serialize_order_item(item) for item in order.items]}

    def cancel(self, restaurant_id: UUID, order_id: UUID) -> dict:
        order = self._get(restaurant_id, order_id)
        if order.status == "received":
            raise ValidationError("Cannot cancel received purchase order")

        order.status = "cancelled"
        self._commit(f"Failed to cancel purchase order {order.order_number}")
        logger.info(f"Purchase order {order.order_number} cancelled")
        return serialize_order(order)

    def _get(self, restaurant_id: UUID, order_id: UUID) -> PurchaseOrder:
        try:
            order = self.db.execute(
                select(PurchaseOrder)
                .options(selectinload(PurchaseOrder.items))
                .where(PurchaseOrder.id == order_id, PurchaseOrder.restaurant_id == restaurant_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DataAccessError(str(e)) from e

        if order is None:
            raise NotFoundError("Purchase order not found")
        return order

    def _commit(self, message: str):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{message}: {e}", exc_info=True)
            raise DataAccessError(f"{message}: {e}") from e
