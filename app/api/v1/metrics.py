from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID

from app.database import get_db
from app.dependencies import get_restaurant_context
from app.services.metrics import MetricsService

router = APIRouter()


@router.get("/dashboard")
def get_dashboard_metrics(
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """
    Overview cards:
    - Low stock items
    - Items expiring in the next 7 days
    - Open purchase orders
    - Weekly food cost percent
    """
    return MetricsService(db).dashboard(restaurant_id)


@router.get("/inventory")
def get_inventory_metrics(
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    return MetricsService(db).inventory(restaurant_id)


@router.get("/orders")
def get_order_metrics(
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    return MetricsService(db).orders(restaurant_id)


@router.get("/receiving")
def get_receiving_metrics(
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    return MetricsService(db).receiving(restaurant_id)
