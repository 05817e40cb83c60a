"""
Business onboarding: registers a tenant together with its first restaurant
and links the registering user to it.
"""
import logging
import re
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import DataAccessError, InventoryAPIError, NotFoundError, ValidationError
from app.models import Business, Restaurant, User

logger = logging.getLogger(__name__)


def generate_slug(value: str) -> str:
    """Lowercase, hyphen-separated slug: Joe's Diner -> joes-diner"""
    slug = value.lower().replace("'", "")
    slug = re.sub(r"\s+", "-", slug.strip())
    slug = re.sub(r"[^\w-]+", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def serialize_business(business: Business) -> dict:
    return {
        "id": str(business.id),
        "name": business.name,
        "slug": business.slug,
        "domain": business.domain,
        "address": business.address,
        "city": business.city,
        "business_type": business.business_type,
        "is_active": business.is_active,
        "created_at": business.created_at.isoformat() if business.created_at else None,
    }


class BusinessService:

    def __init__(self, db: Session):
        self.db = db

    def create_business(self, data, user_id: UUID) -> dict:
        """
        Create the business, a restaurant of the same name and point the
        user at the new business, all in one transaction.

        A slug already in use gets the city appended, then the street
        number. The same name at the same address is rejected.
        """
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")

        try:
            business = Business(
                name=data.name,
                slug=self._unique_slug(data),
                domain=data.domain,
                address=data.address,
                city=data.city,
                business_type="restaurant",
                is_active=True,
            )
            self.db.add(business)
            self.db.flush()

            restaurant = Restaurant(business_id=business.id, name=data.name)
            self.db.add(restaurant)
            user.business_id = business.id
            self.db.commit()
        except InventoryAPIError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating business {data.name!r}: {e}", exc_info=True)
            raise DataAccessError(f"Business creation failed: {e}") from e

        logger.info(f"Registered business {business.slug} for user {user_id}")
        return {
            "business": serialize_business(business),
            "restaurant_id": str(restaurant.id),
            "message": "Business successfully registered",
        }

    def _unique_slug(self, data) -> str:
        slug = generate_slug(data.name)
        if not slug:
            raise ValidationError("Business name must contain letters or digits")

        existing = self._find_by_slug(slug)
        if existing is None:
            return slug
        if existing.address == data.address:
            raise ValidationError("This business is already registered at this address")

        slug = f"{slug}-{generate_slug(data.city)}"
        if self._find_by_slug(slug) is not None:
            street_number = generate_slug(data.address.split(" ")[0])
            slug = f"{slug}-{street_number}"
        return slug

    def _find_by_slug(self, slug: str) -> Optional[Business]:
        return self.db.execute(
            select(Business).where(Business.slug == slug)
        ).scalar_one_or_none()
