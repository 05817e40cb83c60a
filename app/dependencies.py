from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from uuid import UUID

from app.database import get_db
from app.exceptions import NotFoundError
from app.models import Restaurant, User
from app.utils.security import decode_access_token

# Security scheme
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> dict:
    """
    Get current authenticated user from the Supabase access token
    Returns user data with business_id and role
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials)
    if payload is None or payload.get("sub") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = UUID(payload["sub"])
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User lookup failed",
        )

    return {
        "user_id": str(user.id),
        "email": user.email,
        "role": user.role,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "business_id": str(user.business_id) if user.business_id else None,
    }


def get_restaurant_context(
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> UUID:
    """
    Resolve the restaurant of the caller's business.
    Every inventory, order and report query is scoped by this id.
    """
    if not current_user.get("business_id"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is not associated with a business"
        )

    restaurant_id = (
        db.query(Restaurant.id)
        .filter(Restaurant.business_id == UUID(current_user["business_id"]))
        .order_by(Restaurant.created_at)
        .limit(1)
        .scalar()
    )
    if restaurant_id is None:
        raise NotFoundError("No restaurant found for this business. Please contact support.")

    return restaurant_id
