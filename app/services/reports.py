"""
Waste and food cost reports.

All reports read the waste log for one restaurant inside a ReportWindow.
Only rows in the ``waste`` category count as waste; ``all_reductions``
in the summary covers every removal.
"""
import logging
from decimal import Decimal
from typing import Dict, List
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import DataAccessError, ValidationError
from app.models import Ingredient, InventoryItem, WasteLogEntry
from app.schemas.waste import WASTE_CATEGORY
from app.utils.money import money, round2, to_decimal
from app.utils.periods import GROUP_BY_OPTIONS, ReportWindow, bucket_key, describe_change, get_comparison_period

logger = logging.getLogger(__name__)

FOOD_COST_NOTE = "Food cost % calculation requires sales data (coming in future release)"
DEFAULT_ITEM_LIMIT = 20


def _in_window(start, end):
    return (WasteLogEntry.logged_at >= start, WasteLogEntry.logged_at <= end)


def _sorted_groups(groups: List[dict]) -> List[dict]:
    return sorted(groups, key=lambda g: g["total_value"], reverse=True)


class WasteReportService:

    def __init__(self, db: Session):
        self.db = db

    def _fetch(self, label: str, query):
        try:
            return self.db.execute(query).all()
        except SQLAlchemyError as e:
            logger.error(f"Error building {label} report: {e}", exc_info=True)
            raise DataAccessError(f"Failed to get {label} report: {e}") from e

    def _waste_total(self, restaurant_id: UUID, start, end, category=WASTE_CATEGORY) -> Decimal:
        filters = [WasteLogEntry.restaurant_id == restaurant_id, *_in_window(start, end)]
        if category:
            filters.append(WasteLogEntry.category == category)
        rows = self._fetch("waste total", select(WasteLogEntry.cost_value).where(*filters))
        return sum((to_decimal(r.cost_value) for r in rows), Decimal("0"))

    def _comparison(self, restaurant_id: UUID, window: ReportWindow, current: Decimal, value_key: str) -> dict:
        previous_start, previous_end = get_comparison_period(window.start, window.end)
        previous = self._waste_total(restaurant_id, previous_start, previous_end)
        return {
            "previous_period": {
                "start": previous_start.isoformat(),
                "end": previous_end.isoformat(),
                value_key: money(previous),
            },
            "change": describe_change(round2(current), round2(previous)),
        }

    def summary(self, restaurant_id: UUID, window: ReportWindow, compare: bool = False) -> dict:
        waste_rows = self._fetch(
            "waste summary",
            select(WasteLogEntry.cost_value).where(
                WasteLogEntry.restaurant_id == restaurant_id,
                WasteLogEntry.category == WASTE_CATEGORY,
                *_in_window(window.start, window.end),
            ),
        )
        total_value = sum((to_decimal(r.cost_value) for r in waste_rows), Decimal("0"))
        total_count = len(waste_rows)
        all_reductions = self._waste_total(restaurant_id, window.start, window.end, category=None)

        response = {
            "period": window.as_dict(),
            "waste": {
                "total_value": money(total_value),
                "total_count": total_count,
                "avg_per_incident": money(total_value / total_count) if total_count else 0,
            },
            "all_reductions": {
                "total_value": money(all_reductions),
            },
        }

        if compare:
            response["comparison"] = self._comparison(restaurant_id, window, total_value, "total_value")

        return response

    def by_category(self, restaurant_id: UUID, window: ReportWindow) -> dict:
        category = func.coalesce(Ingredient.category, "uncategorized").label("category")
        rows = self._fetch(
            "waste by category",
            select(category, WasteLogEntry.cost_value)
            .select_from(WasteLogEntry)
            .outerjoin(Ingredient, Ingredient.id == WasteLogEntry.ingredient_id)
            .where(
                WasteLogEntry.restaurant_id == restaurant_id,
                WasteLogEntry.category == WASTE_CATEGORY,
                *_in_window(window.start, window.end),
            ),
        )

        groups = self._group(rows, key=lambda r: r.category, label="category")
        return {
            "period": window.as_dict(),
            "total_waste": money(sum((to_decimal(g["total_value"]) for g in groups), Decimal("0"))),
            "categories": groups,
        }

    def by_reason(self, restaurant_id: UUID, window: ReportWindow) -> dict:
        rows = self._fetch(
            "waste by reason",
            select(WasteLogEntry.reason, WasteLogEntry.cost_value).where(
                WasteLogEntry.restaurant_id == restaurant_id,
                WasteLogEntry.category == WASTE_CATEGORY,
                *_in_window(window.start, window.end),
            ),
        )

        groups = self._group(rows, key=lambda r: r.reason, label="reason")
        return {
            "period": window.as_dict(),
            "total_waste": money(sum((to_decimal(g["total_value"]) for g in groups), Decimal("0"))),
            "reasons": groups,
        }

    def by_item(self, restaurant_id: UUID, window: ReportWindow, limit: int = DEFAULT_ITEM_LIMIT) -> dict:
        if limit < 1:
            raise ValidationError("limit must be a positive integer")

        # Inner join: log rows whose ingredient is gone are left out
        rows = self._fetch(
            "waste by item",
            select(
                Ingredient.id.label("ingredient_id"),
                Ingredient.name,
                Ingredient.category,
                WasteLogEntry.quantity,
                WasteLogEntry.unit,
                WasteLogEntry.cost_value,
            )
            .select_from(WasteLogEntry)
            .join(Ingredient, Ingredient.id == WasteLogEntry.ingredient_id)
            .where(
                WasteLogEntry.restaurant_id == restaurant_id,
                WasteLogEntry.category == WASTE_CATEGORY,
                *_in_window(window.start, window.end),
            )
            .order_by(WasteLogEntry.logged_at),
        )

        items: Dict[UUID, dict] = {}
        for row in rows:
            item = items.get(row.ingredient_id)
            if item is None:
                item = items[row.ingredient_id] = {
                    "ingredient_id": str(row.ingredient_id),
                    "ingredient_name": row.name,
                    "category": row.category,
                    "total_quantity": Decimal("0"),
                    "total_value": Decimal("0"),
                    "count": 0,
                    "unit": row.unit,
                }
            item["total_quantity"] += to_decimal(row.quantity)
            item["total_value"] += to_decimal(row.cost_value)
            item["count"] += 1

        result = [
            {**item, "total_quantity": money(item["total_quantity"]), "total_value": money(item["total_value"])}
            for item in items.values()
        ]
        return {
            "period": window.as_dict(),
            "items": _sorted_groups(result)[:limit],
        }

    def trends(self, restaurant_id: UUID, window: ReportWindow, group_by: str = "day") -> dict:
        if group_by not in GROUP_BY_OPTIONS:
            raise ValidationError(f"groupBy must be one of: {', '.join(GROUP_BY_OPTIONS)}")

        rows = self._fetch(
            "waste trends",
            select(WasteLogEntry.logged_at, WasteLogEntry.cost_value)
            .where(
                WasteLogEntry.restaurant_id == restaurant_id,
                WasteLogEntry.category == WASTE_CATEGORY,
                *_in_window(window.start, window.end),
            )
            .order_by(WasteLogEntry.logged_at),
        )

        buckets = self._group(rows, key=lambda r: bucket_key(r.logged_at, group_by), label="date")
        return {
            "period": window.as_dict(),
            "group_by": group_by,
            "trends": sorted(buckets, key=lambda b: b["date"]),
        }

    def food_cost(self, restaurant_id: UUID, window: ReportWindow, compare: bool = False) -> dict:
        waste_cost = self._waste_total(restaurant_id, window.start, window.end)

        # Current stock value, not limited to the window
        stock = self._fetch(
            "food cost",
            select(InventoryItem.quantity, InventoryItem.cost_per_unit).where(
                InventoryItem.restaurant_id == restaurant_id
            ),
        )
        inventory_value = sum(
            (to_decimal(r.quantity) * to_decimal(r.cost_per_unit) for r in stock), Decimal("0")
        )

        waste_percentage = Decimal("0")
        if inventory_value > 0:
            waste_percentage = waste_cost / inventory_value * 100

        response = {
            "period": window.as_dict(),
            "waste_cost": money(waste_cost),
            "total_inventory_value": money(inventory_value),
            "waste_percentage": money(waste_percentage),
            "note": FOOD_COST_NOTE,
        }

        if compare:
            response["comparison"] = self._comparison(restaurant_id, window, waste_cost, "waste_cost")

        return response

    @staticmethod
    def _group(rows, key, label: str) -> List[dict]:
        """Sum cost_value and count rows per key, largest total first"""
        groups: Dict[str, dict] = {}
        for row in rows:
            name = key(row)
            group = groups.setdefault(name, {label: name, "total_value": Decimal("0"), "count": 0})
            group["total_value"] += to_decimal(row.cost_value)
            group["count"] += 1

        return _sorted_groups([{**g, "total_value": money(g["total_value"])} for g in groups.values()])
