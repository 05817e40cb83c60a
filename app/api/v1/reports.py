from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID
from datetime import date

from app.database import get_db
from app.dependencies import get_restaurant_context
from app.services.reports import DEFAULT_ITEM_LIMIT, WasteReportService
from app.utils.periods import ReportWindow, resolve_window

router = APIRouter()


def report_window(default: str):
    """
    Dependency resolving ?period=&start=&end= into a ReportWindow.
    start and end (YYYY-MM-DD) together override the period.
    """
    def resolver(
        period: Optional[str] = Query(None, description="today, week, month, quarter or year"),
        start: Optional[date] = Query(None, description="Custom range start (YYYY-MM-DD)"),
        end: Optional[date] = Query(None, description="Custom range end (YYYY-MM-DD)"),
    ) -> ReportWindow:
        return resolve_window(period, start=start, end=end, default=default)
    return resolver


@router.get("/waste/summary")
def get_waste_summary(
    compare: bool = Query(False, description="Include the previous period"),
    window: ReportWindow = Depends(report_window("week")),
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """
    Waste summary:
    - Total waste value, count and average per incident
    - Value of all removals, waste or not
    - Optional change against the previous period of equal length
    """
    return WasteReportService(db).summary(restaurant_id, window, compare=compare)


@router.get("/waste/by-category")
def get_waste_by_category(
    window: ReportWindow = Depends(report_window("week")),
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """Waste grouped by ingredient category"""
    return WasteReportService(db).by_category(restaurant_id, window)


@router.get("/waste/by-reason")
def get_waste_by_reason(
    window: ReportWindow = Depends(report_window("week")),
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    return WasteReportService(db).by_reason(restaurant_id, window)


@router.get("/waste/by-item")
def get_waste_by_item(
    limit: int = Query(DEFAULT_ITEM_LIMIT, ge=1, le=500),
    window: ReportWindow = Depends(report_window("week")),
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """Most wasted ingredients by value"""
    return WasteReportService(db).by_item(restaurant_id, window, limit=limit)


@router.get("/waste/trends")
def get_waste_trends(
    group_by: str = Query("day", alias="groupBy", description="day, week or month"),
    window: ReportWindow = Depends(report_window("month")),
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """Waste value per day, week or month, oldest first"""
    return WasteReportService(db).trends(restaurant_id, window, group_by=group_by)


@router.get("/food-cost")
def get_food_cost(
    compare: bool = Query(False, description="Include the previous period"),
    window: ReportWindow = Depends(report_window("month")),
    restaurant_id: UUID = Depends(get_restaurant_context),
    db: Session = Depends(get_db)
):
    """Waste cost against the value of current stock"""
    return WasteReportService(db).food_cost(restaurant_id, window, compare=compare)
