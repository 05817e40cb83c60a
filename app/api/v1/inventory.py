from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from app.database import get_db
from app.dependencies import get_current_user, get_restaurant_context
from app.schemas.ingredient import IngredientResponse
from app.schemas.inventory import ReceiveInventoryRequest, RemoveInventoryRequest
from app.services.inventory import InventoryService

router = APIRouter()


@router.get("", response_model=List[dict])
def get_inventory(
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """All inventory rows of the caller's restaurant, newest first"""
    return InventoryService(db).list_inventory(restaurant_id)


@router.get("/lookup", response_model=IngredientResponse)
def lookup_ingredient(
    barcode: Optional[str] = Query(None, description="Barcode printed on the product"),
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return InventoryService(db).lookup_by_barcode((barcode or "").strip())


@router.post("/receive")
def receive_inventory(
    request: ReceiveInventoryRequest,
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """
    Receive stock into inventory.
    Adds to the existing quantity, or creates the row on first receipt.
    """
    return InventoryService(db).receive(restaurant_id, request.items)


@router.post("/remove")
def remove_inventory(
    request: RemoveInventoryRequest,
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Remove stock for waste or usage.
    Rejected with 409 when any item exceeds the quantity on hand; nothing is
    removed in that case.
    """
    return InventoryService(db).remove(
        restaurant_id,
        request.items,
        user_id=UUID(current_user["user_id"])
    )
