"""
Inventory ledger: on-hand quantity per (restaurant, ingredient).

Quantities are changed with single atomic statements so two requests touching
the same row cannot overwrite each other's result. Receive is an upsert that
adds to the stored quantity, remove is a conditional decrement that only
applies while enough stock is on hand. A request's items share one
transaction.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import upsert
from app.exceptions import DataAccessError, InsufficientStockError, InventoryAPIError, NotFoundError, ValidationError
from app.models import Ingredient, InventoryItem, WasteLogEntry
from app.schemas.waste import category_for_reason
from app.utils.money import round2, to_decimal
from app.utils.timezone import get_local_now

logger = logging.getLogger(__name__)


@dataclass
class StockLine:
    """A quantity of one ingredient coming into stock from outside a receive request"""
    ingredient_id: UUID
    quantity: Decimal
    unit: Optional[str] = None
    location: Optional[str] = None
    expiration_date: Optional[date] = None
    cost_per_unit: Optional[Decimal] = None


def _optional_float(value):
    return float(value) if value is not None else None


def serialize_inventory_row(row) -> dict:
    return {
        "id": str(row["id"]),
        "restaurant_id": str(row["restaurant_id"]),
        "ingredient_id": str(row["ingredient_id"]),
        "quantity": float(row["quantity"]),
        "unit": row["unit"],
        "minimum_quantity": _optional_float(row["minimum_quantity"]),
        "cost_per_unit": _optional_float(row["cost_per_unit"]),
        "location": row["location"],
        "expiration_date": row["expiration_date"].isoformat() if row["expiration_date"] else None,
        "last_restocked": row["last_restocked"].isoformat() if row["last_restocked"] else None,
    }


class InventoryService:
    """Receive, remove and look up stock for one restaurant at a time."""

    def __init__(self, db: Session):
        self.db = db

    def list_inventory(self, restaurant_id: UUID) -> List[dict]:
        if not restaurant_id:
            raise ValidationError("Restaurant ID is required")

        try:
            results = self.db.execute(
                select(
                    InventoryItem.id,
                    InventoryItem.ingredient_id,
                    Ingredient.name.label("ingredient_name"),
                    Ingredient.category,
                    InventoryItem.quantity,
                    InventoryItem.unit,
                    InventoryItem.minimum_quantity,
                    InventoryItem.cost_per_unit,
                    InventoryItem.location,
                    InventoryItem.expiration_date,
                    InventoryItem.last_restocked,
                )
                .outerjoin(Ingredient, Ingredient.id == InventoryItem.ingredient_id)
                .where(InventoryItem.restaurant_id == restaurant_id)
                .order_by(InventoryItem.created_at.desc())
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Error getting inventory list: {e}", exc_info=True)
            raise DataAccessError(f"Failed to get inventory: {e}") from e

        return [
            {
                "id": str(r.id),
                "ingredient_id": str(r.ingredient_id),
                "ingredient_name": r.ingredient_name or "Unknown",
                "category": r.category or "uncategorized",
                "quantity": float(r.quantity),
                "unit": r.unit,
                "minimum_quantity": _optional_float(r.minimum_quantity),
                "cost_per_unit": _optional_float(r.cost_per_unit),
                "location": r.location,
                "expiration_date": r.expiration_date.isoformat() if r.expiration_date else None,
                "last_restocked": r.last_restocked.isoformat() if r.last_restocked else None,
            }
            for r in results
        ]

    def lookup_by_barcode(self, barcode: str) -> Ingredient:
        if not barcode:
            raise ValidationError("Barcode parameter is required")

        try:
            ingredient = self.db.execute(
                select(Ingredient).where(Ingredient.barcode == barcode).limit(1)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error looking up ingredient: {e}", exc_info=True)
            raise DataAccessError(str(e)) from e

        if ingredient is None:
            raise NotFoundError("Ingredient not found")
        return ingredient

    def receive(self, restaurant_id: UUID, items: list) -> dict:
        """
        Add received stock, creating the inventory row on first receipt.

        Args:
            restaurant_id: Restaurant UUID resolved from the caller
            items: objects with ingredient_id, quantity, unit, location, expiration_date

        Returns:
            {"success", "message", "items"} with the resulting inventory rows
        """
        if not restaurant_id:
            raise ValidationError("Restaurant ID is required")

        try:
            rows = self.stock_in(restaurant_id, items)
            self.db.commit()
        except InventoryAPIError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error receiving inventory: {e}", exc_info=True)
            raise DataAccessError(f"Failed to receive inventory: {e}") from e

        logger.info(f"Received {len(items)} items for restaurant {restaurant_id}")
        return {
            "success": True,
            "message": f"Received {len(items)} items",
            "items": rows,
        }

    def stock_in(self, restaurant_id: UUID, items: Iterable) -> List[dict]:
        """Upsert every item without committing; the caller owns the transaction"""
        items = list(items)
        self.ensure_ingredients_exist(item.ingredient_id for item in items)

        table = InventoryItem.__table__
        now = get_local_now()
        rows = []

        for item in items:
            insert_stmt = upsert(self.db, table).values(
                id=uuid.uuid4(),
                restaurant_id=restaurant_id,
                ingredient_id=item.ingredient_id,
                quantity=to_decimal(item.quantity),
                unit=item.unit,
                location=item.location,
                expiration_date=item.expiration_date,
                cost_per_unit=item.cost_per_unit,
                last_restocked=now,
            )
            stmt = insert_stmt.on_conflict_do_update(
                index_elements=[table.c.restaurant_id, table.c.ingredient_id],
                set_={
                    "quantity": table.c.quantity + insert_stmt.excluded.quantity,
                    "last_restocked": insert_stmt.excluded.last_restocked,
                    "expiration_date": func.coalesce(
                        insert_stmt.excluded.expiration_date, table.c.expiration_date
                    ),
                    "cost_per_unit": func.coalesce(
                        insert_stmt.excluded.cost_per_unit, table.c.cost_per_unit
                    ),
                    "updated_at": func.now(),
                },
            ).returning(*table.c)

            row = self.db.execute(stmt).mappings().one()
            rows.append(serialize_inventory_row(row))

        return rows

    def remove(self, restaurant_id: UUID, items: list, user_id=None) -> dict:
        """
        Take stock out for waste or a non-waste reduction.

        An item that would drive the quantity below zero is rejected with
        InsufficientStockError and the whole request is rolled back. Every
        applied removal is written to the waste log.
        """
        if not restaurant_id:
            raise ValidationError("Restaurant ID is required")

        now = get_local_now()
        removed = []

        try:
            for item in items:
                removed.append(self._remove_one(restaurant_id, item, user_id, now))
            self.db.commit()
        except InventoryAPIError as e:
            self.db.rollback()
            logger.warning(f"Inventory removal rejected for restaurant {restaurant_id}: {e.message}")
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error removing inventory: {e}", exc_info=True)
            raise DataAccessError(f"Failed to remove inventory: {e}") from e

        logger.info(f"Removed {len(items)} items for restaurant {restaurant_id}")
        return {
            "success": True,
            "message": f"Removed {len(items)} items from inventory",
            "items": removed,
        }

    def _remove_one(self, restaurant_id: UUID, item, user_id, now) -> dict:
        existing = self._find_row(restaurant_id, item.ingredient_id)
        if existing is None:
            raise NotFoundError(f"Inventory item not found for ingredient: {item.ingredient_id}")

        remove_quantity = to_decimal(item.quantity)
        updated = self.db.execute(
            update(InventoryItem)
            .where(
                InventoryItem.id == existing.id,
                InventoryItem.quantity >= remove_quantity,
            )
            .values(
                quantity=InventoryItem.quantity - remove_quantity,
                updated_at=func.now(),
            )
            .returning(InventoryItem.id, InventoryItem.ingredient_id, InventoryItem.quantity)
            .execution_options(synchronize_session=False)
        ).one_or_none()

        if updated is None:
            current = self._find_row(restaurant_id, item.ingredient_id)
            raise InsufficientStockError(
                ingredient_id=item.ingredient_id,
                available=float(current.quantity if current else 0),
                requested=float(remove_quantity),
                unit=item.unit or existing.unit or "",
            )

        self.db.add(WasteLogEntry(
            restaurant_id=restaurant_id,
            ingredient_id=item.ingredient_id,
            quantity=remove_quantity,
            unit=item.unit or existing.unit,
            cost_value=round2(remove_quantity * to_decimal(existing.cost_per_unit)),
            reason=item.reason,
            category=category_for_reason(item.reason),
            notes=item.notes,
            logged_by=user_id,
            logged_at=now,
        ))

        return {
            "id": str(updated.id),
            "ingredient_id": str(updated.ingredient_id),
            "new_quantity": float(updated.quantity),
            "removed_quantity": float(remove_quantity),
            "reason": item.reason,
            "notes": item.notes,
        }

    def _find_row(self, restaurant_id: UUID, ingredient_id: UUID):
        # Column select, so values are always read fresh from the database
        return self.db.execute(
            select(
                InventoryItem.id,
                InventoryItem.quantity,
                InventoryItem.unit,
                InventoryItem.cost_per_unit,
            ).where(
                InventoryItem.restaurant_id == restaurant_id,
                InventoryItem.ingredient_id == ingredient_id,
            )
        ).one_or_none()

    def ensure_ingredients_exist(self, ingredient_ids: Iterable[UUID]):
        wanted = set(ingredient_ids)
        if not wanted:
            return
        found = set(self.db.execute(
            select(Ingredient.id).where(Ingredient.id.in_(wanted))
        ).scalars())
        missing = wanted - found
        if missing:
            raise NotFoundError(f"Ingredient not found: {', '.join(sorted(str(m) for m in missing))}")
