from pydantic import BaseModel
from typing import Optional
from uuid import UUID


class IngredientResponse(BaseModel):
    id: UUID
    name: str
    category: Optional[str] = None
    unit: Optional[str] = None
    barcode: Optional[str] = None

    class Config:
        from_attributes = True
