from sqlalchemy import Column, String, Boolean, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import uuid

from app.database import Base
from app.models.base import TimestampMixin


class Business(Base, TimestampMixin):
    __tablename__ = "businesses"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True)
    domain = Column(String(255))
    address = Column(String(255))
    city = Column(String(100))
    business_type = Column(String(50), nullable=False, default="restaurant")
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    restaurants = relationship("Restaurant", back_populates="business")
    users = relationship("User", back_populates="business")


class Restaurant(Base, TimestampMixin):
    __tablename__ = "restaurants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    business_id = Column(Uuid, ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)

    # Relationships
    business = relationship("Business", back_populates="restaurants")


class User(Base, TimestampMixin):
    """Profile row for a Supabase Auth user; the id is the auth user's id"""
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    first_name = Column(String(100))
    last_name = Column(String(100))
    role = Column(String(50), nullable=False, default='MANAGER')  # OWNER, MANAGER, STAFF
    business_id = Column(Uuid, ForeignKey('businesses.id', ondelete='SET NULL'))

    # Relationships
    business = relationship("Business", back_populates="users")
