from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.database import get_db
from app.dependencies import get_current_user
from app.schemas.business import BusinessCreate
from app.services.business import BusinessService

router = APIRouter()


@router.post("/create", status_code=status.HTTP_201_CREATED)
def create_business(
    data: BusinessCreate,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Register the caller's business with its first restaurant.
    Afterwards the caller's inventory, order and report requests are scoped to it.
    """
    return BusinessService(db).create_business(data, UUID(current_user["user_id"]))
