from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID

from app.database import get_db
from app.dependencies import get_restaurant_context
from app.services.metrics import MetricsService

router = APIRouter()


@router.get("")
def get_dashboard(
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """Dashboard summary kept for older clients; new clients use /metrics/dashboard"""
    return MetricsService(db).legacy_dashboard(restaurant_id)
