from pydantic import Field
from typing import Optional, List
from datetime import date
from uuid import UUID
from decimal import Decimal

from app.schemas import BaseSchema


class PurchaseOrderItemCreate(BaseSchema):
    ingredient_id: UUID = Field(alias="ingredientId")
    quantity_ordered: Decimal = Field(gt=0, alias="quantityOrdered")
    unit: str = Field(min_length=1)
    unit_price: Decimal = Field(ge=0, alias="unitPrice")


class PurchaseOrderCreate(BaseSchema):
    supplier_name: str = Field(min_length=1, alias="supplierName")
    expected_delivery_date: Optional[date] = Field(default=None, alias="expectedDeliveryDate")
    items: List[PurchaseOrderItemCreate] = Field(min_length=1)
    notes: Optional[str] = None


class ReceivePurchaseOrder(BaseSchema):
    actual_delivery_date: Optional[date] = Field(default=None, alias="actualDeliveryDate")
