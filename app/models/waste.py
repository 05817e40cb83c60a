from sqlalchemy import Column, String, ForeignKey, DateTime, Numeric, Uuid
from sqlalchemy.orm import relationship
import uuid

from app.database import Base


class WasteLogEntry(Base):
    """Append-only record of every inventory removal"""
    __tablename__ = "waste_log"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(Uuid, ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False, index=True)
    ingredient_id = Column(Uuid, ForeignKey('ingredient_library.id', ondelete='SET NULL'))
    quantity = Column(Numeric(12, 4), nullable=False)
    unit = Column(String(50))
    cost_value = Column(Numeric(12, 2), nullable=False, default=0)
    reason = Column(String(50), nullable=False)
    category = Column(String(20), nullable=False)  # waste, reduction
    notes = Column(String)
    logged_by = Column(Uuid)
    logged_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Relationships
    ingredient = relationship("Ingredient")
