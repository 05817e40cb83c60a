"""
Test configuration and fixtures.
"""
import os
import uuid
from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TIMEZONE"] = "UTC"
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret"

from app.main import app
from app.database import Base, get_db
from app.dependencies import get_current_user
from app.models import Business, Ingredient, InventoryItem, Restaurant, User


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database per test"""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Generator[Session, None, None]:
    """Create a database session for the test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def business(db: Session) -> Business:
    business = Business(name="Test Bistro", slug="test-bistro")
    db.add(business)
    db.commit()
    return business


@pytest.fixture
def restaurant(db: Session, business: Business) -> Restaurant:
    restaurant = Restaurant(business_id=business.id, name="Test Bistro Downtown")
    db.add(restaurant)
    db.commit()
    return restaurant


@pytest.fixture
def user(db: Session, business: Business, restaurant: Restaurant) -> User:
    user = User(
        id=uuid.uuid4(),
        email="manager@example.com",
        first_name="Test",
        last_name="Manager",
        role="MANAGER",
        business_id=business.id,
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def ingredients(db: Session) -> dict:
    """Tomatoes (produce) and chicken breast (protein)"""
    tomato = Ingredient(name="Roma Tomato", category="produce", unit="lb", barcode="0001112223")
    chicken = Ingredient(name="Chicken Breast", category="protein", unit="lb", barcode="0004445556")
    db.add_all([tomato, chicken])
    db.commit()
    return {"tomato": tomato, "chicken": chicken}


@pytest.fixture
def stocked(db: Session, restaurant: Restaurant, ingredients: dict) -> dict:
    """Inventory rows with known cost, minimum and quantity"""
    rows = {
        "tomato": InventoryItem(
            restaurant_id=restaurant.id,
            ingredient_id=ingredients["tomato"].id,
            quantity=Decimal("20"),
            unit="lb",
            minimum_quantity=Decimal("5"),
            cost_per_unit=Decimal("1.50"),
        ),
        "chicken": InventoryItem(
            restaurant_id=restaurant.id,
            ingredient_id=ingredients["chicken"].id,
            quantity=Decimal("4"),
            unit="lb",
            minimum_quantity=Decimal("10"),
            cost_per_unit=Decimal("3.25"),
        ),
    }
    db.add_all(rows.values())
    db.commit()
    return rows


@pytest.fixture
def current_user(user: User) -> dict:
    return {
        "user_id": str(user.id),
        "email": user.email,
        "role": user.role,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "business_id": str(user.business_id),
    }


@pytest.fixture(scope="function")
def client(db: Session, current_user: dict) -> Generator[TestClient, None, None]:
    """Test client authenticated as the seeded manager."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: current_user

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def anonymous_client(db: Session) -> Generator[TestClient, None, None]:
    """Test client with the real auth gate in place."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
