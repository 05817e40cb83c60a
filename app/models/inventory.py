from sqlalchemy import Column, String, ForeignKey, DateTime, Date, Numeric, Uuid, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
import uuid

from app.database import Base
from app.models.base import TimestampMixin


class InventoryItem(Base, TimestampMixin):
    __tablename__ = "restaurant_inventory"
    __table_args__ = (
        UniqueConstraint('restaurant_id', 'ingredient_id', name='uq_restaurant_inventory_ingredient'),
        CheckConstraint('quantity >= 0', name='ck_restaurant_inventory_quantity_non_negative'),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(Uuid, ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False)
    ingredient_id = Column(Uuid, ForeignKey('ingredient_library.id', ondelete='CASCADE'), nullable=False)
    quantity = Column(Numeric(12, 4), nullable=False, default=0)
    unit = Column(String(50))
    minimum_quantity = Column(Numeric(12, 4))  # reorder threshold
    cost_per_unit = Column(Numeric(12, 4))
    location = Column(String(100))
    expiration_date = Column(Date)
    last_restocked = Column(DateTime(timezone=True))

    # Relationships
    restaurant = relationship("Restaurant")
    ingredient = relationship("Ingredient", back_populates="inventory_items")
