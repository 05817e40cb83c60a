from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Literal, Optional
from uuid import UUID

from app.database import get_db
from app.dependencies import get_current_user, get_restaurant_context
from app.schemas.purchase_order import PurchaseOrderCreate, ReceivePurchaseOrder
from app.services.purchase_orders import PurchaseOrderService

router = APIRouter()

OrderStatus = Literal["draft", "ordered", "received", "cancelled"]


@router.get("")
def get_all_purchase_orders(
    status: Optional[OrderStatus] = Query(None, description="Filter by status"),
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """Get all purchase orders, newest first"""
    return PurchaseOrderService(db).list_purchase_orders(restaurant_id, status=status)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    po_data: PurchaseOrderCreate,
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user)
):
    """
    Create a draft purchase order.
    Line totals, subtotal, tax and total are computed server side.
    """
    return PurchaseOrderService(db).create_purchase_order(
        restaurant_id,
        po_data,
        created_by=UUID(current_user["user_id"])
    )


@router.get("/{po_id}")
def get_purchase_order(
    po_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    return PurchaseOrderService(db).get_purchase_order(restaurant_id, po_id)


@router.patch("/{po_id}/submit")
def submit_purchase_order(
    po_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """Send a draft order to the supplier (draft -> ordered)"""
    return PurchaseOrderService(db).mark_ordered(restaurant_id, po_id)


@router.post("/{po_id}/receive")
def receive_purchase_order(
    po_id: UUID,
    receive_data: Optional[ReceivePurchaseOrder] = None,
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """Mark the order delivered and stock every line into inventory"""
    actual_delivery_date = receive_data.actual_delivery_date if receive_data else None
    return PurchaseOrderService(db).mark_received(restaurant_id, po_id, actual_delivery_date)


@router.delete("/{po_id}")
def cancel_purchase_order(
    po_id: UUID,
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """Cancel an order that has not been received"""
    return PurchaseOrderService(db).cancel(restaurant_id, po_id)
