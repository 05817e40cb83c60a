from sqlalchemy import Column, String, ForeignKey, DateTime, Date, Numeric, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
import uuid

from app.database import Base
from app.models.base import TimestampMixin


class PurchaseOrder(Base, TimestampMixin):
    __tablename__ = "purchase_orders"
    __table_args__ = (
        UniqueConstraint('restaurant_id', 'order_number', name='uq_purchase_orders_restaurant_number'),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(Uuid, ForeignKey('restaurants.id', ondelete='CASCADE'), nullable=False)
    order_number = Column(String(50), nullable=False)  # PO-2025-0001
    status = Column(String(50), nullable=False, default='draft')  # draft, ordered, received, cancelled
    supplier_name = Column(String(255), nullable=False)
    order_date = Column(DateTime(timezone=True), nullable=False)
    expected_delivery_date = Column(Date)
    actual_delivery_date = Column(Date)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    notes = Column(String)
    created_by = Column(Uuid)

    # Relationships
    items = relationship("PurchaseOrderItem", back_populates="purchase_order", cascade="all, delete-orphan")


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    purchase_order_id = Column(Uuid, ForeignKey('purchase_orders.id', ondelete='CASCADE'), nullable=False)
    ingredient_id = Column(Uuid, ForeignKey('ingredient_library.id'), nullable=False)
    quantity_ordered = Column(Numeric(12, 4), nullable=False)
    quantity_received = Column(Numeric(12, 4), nullable=False, default=0)
    unit = Column(String(50), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    line_total = Column(Numeric(12, 2), nullable=False)

    # Relationships
    purchase_order = relationship("PurchaseOrder", back_populates="items")
    ingredient = relationship("Ingredient")
