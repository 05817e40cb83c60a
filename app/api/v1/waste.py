from fastapi import APIRouter, Depends

from app.dependencies import get_current_user
from app.schemas.waste import REDUCTION_REASONS, WASTE_CATEGORIES, WASTE_REASONS

router = APIRouter()


@router.get("/reasons")
def get_waste_reasons(current_user: dict = Depends(get_current_user)):
    """Reasons accepted by /inventory/remove, for dropdowns"""
    return {
        "waste": WASTE_REASONS,
        "reduction": REDUCTION_REASONS,
    }


@router.get("/categories")
def get_waste_categories(current_user: dict = Depends(get_current_user)):
    return WASTE_CATEGORIES
