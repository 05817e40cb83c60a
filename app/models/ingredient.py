from sqlalchemy import Column, String, Uuid
from sqlalchemy.orm import relationship
import uuid

from app.database import Base
from app.models.base import TimestampMixin


class Ingredient(Base, TimestampMixin):
    __tablename__ = "ingredient_library"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    category = Column(String(100))  # protein, produce, dairy, dry-goods ...
    unit = Column(String(50))
    barcode = Column(String(100), index=True)

    # Relationships
    inventory_items = relationship("InventoryItem", back_populates="ingredient")
