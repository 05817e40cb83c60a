from pydantic import Field
from typing import Optional, List
from datetime import date
from uuid import UUID
from decimal import Decimal

from app.schemas import BaseSchema
from app.schemas.waste import RemovalReason


class ReceiveInventoryItem(BaseSchema):
    ingredient_id: UUID = Field(alias="ingredientId")
    quantity: Decimal = Field(gt=0)
    unit: str = Field(min_length=1)
    location: Optional[str] = None
    expiration_date: Optional[date] = Field(default=None, alias="expirationDate")
    cost_per_unit: Optional[Decimal] = Field(default=None, ge=0, alias="costPerUnit")


class ReceiveInventoryRequest(BaseSchema):
    items: List[ReceiveInventoryItem] = Field(min_length=1)


class RemoveInventoryItem(BaseSchema):
    ingredient_id: UUID = Field(alias="ingredientId")
    quantity: Decimal = Field(gt=0)
    reason: RemovalReason
    unit: Optional[str] = None
    notes: Optional[str] = None


class RemoveInventoryRequest(BaseSchema):
    items: List[RemoveInventoryItem] = Field(min_length=1)
