import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from supabase import AuthError

from app.config import settings
from app.database import get_db
from app.dependencies import get_current_user, security
from app.exceptions import DataAccessError
from app.models import Restaurant, User
from app.schemas import SuccessResponse
from app.schemas.auth import (
    CurrentUserResponse,
    LoginRequest,
    LoginResponse,
    PasswordResetRequest,
    RegisterRequest,
    UserUpdate,
)
from app.utils.supabase_client import get_supabase, get_supabase_admin

router = APIRouter()
logger = logging.getLogger(__name__)


def _token_response(result, user: Optional[User]) -> dict:
    return {
        "access_token": result.session.access_token,
        "token_type": "bearer",
        "user": {
            "id": str(result.user.id),
            "email": result.user.email,
            "first_name": user.first_name if user else None,
            "last_name": user.last_name if user else None,
            "role": user.role if user else None,
            "business_id": str(user.business_id) if user and user.business_id else None,
        }
    }


def _restaurant_for(db: Session, business_id: Optional[str]) -> Optional[str]:
    if not business_id:
        return None
    restaurant_id = (
        db.query(Restaurant.id)
        .filter(Restaurant.business_id == UUID(business_id))
        .order_by(Restaurant.created_at)
        .limit(1)
        .scalar()
    )
    return str(restaurant_id) if restaurant_id else None


@router.post("/register", response_model=LoginResponse, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """
    Create a confirmed Supabase Auth user and its profile row, then sign in.
    The new user has no business yet; POST /business/create links one.
    """
    try:
        created = get_supabase_admin().auth.admin.create_user({
            "email": request.email,
            "password": request.password,
            "email_confirm": True,
            "user_metadata": {
                "firstName": request.first_name or "",
                "lastName": request.last_name or "",
            },
        })
    except AuthError as e:
        logger.info(f"Registration failed for {request.email}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Auth creation failed: {e}"
        )

    user = User(
        id=UUID(str(created.user.id)),
        email=request.email,
        first_name=request.first_name,
        last_name=request.last_name,
        role=request.role,
    )
    db.add(user)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Profile insert failed for auth user {created.user.id}: {e}", exc_info=True)
        raise DataAccessError(f"Database user creation failed: {e}") from e

    try:
        result = get_supabase().auth.sign_in_with_password(
            {"email": request.email, "password": request.password}
        )
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Sign in failed: {e}"
        )

    if result.session is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Sign in failed: no session returned"
        )

    logger.info(f"Registered user {user.id}")
    return _token_response(result, user)


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """
    Sign in with Supabase Auth and return its access token.
    The token is what every other endpoint expects as the bearer credential.
    """
    try:
        result = get_supabase().auth.sign_in_with_password(
            {"email": request.email, "password": request.password}
        )
    except AuthError as e:
        logger.info(f"Login failed for {request.email}: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Login failed: {e}"
        )

    if result.session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Login failed: no session returned"
        )

    user = db.get(User, UUID(str(result.user.id)))
    if user is None:
        logger.warning(f"Authenticated user {result.user.id} has no users row")

    return _token_response(result, user)


@router.post("/reset-password", response_model=SuccessResponse)
def reset_password(request: PasswordResetRequest):
    """Send a Supabase password reset email that links back to the frontend"""
    try:
        get_supabase().auth.reset_password_for_email(
            request.email,
            {"redirect_to": f"{settings.FRONTEND_URL}/reset-password"}
        )
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password reset failed: {e}"
        )

    return {"success": True, "message": "Password reset email sent"}


@router.post("/logout", response_model=SuccessResponse)
def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: dict = Depends(get_current_user)
):
    """Revoke the caller's Supabase session"""
    try:
        get_supabase_admin().auth.admin.sign_out(credentials.credentials)
    except AuthError as e:
        logger.warning(f"Logout failed for user {current_user['user_id']}: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Logout failed: {e}"
        )

    return {"success": True, "message": "Logged out"}


@router.get("/me", response_model=CurrentUserResponse)
def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get current user information with the restaurant it is scoped to"""
    return {
        **current_user,
        "restaurant_id": _restaurant_for(db, current_user.get("business_id")),
    }


@router.put("/me", response_model=CurrentUserResponse)
def update_current_user(
    updates: UserUpdate,
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update the caller's profile.
    Email, password and names are changed in Supabase Auth first, then the users row.
    """
    user_id = UUID(current_user["user_id"])

    attributes = {}
    if updates.email:
        attributes["email"] = updates.email
    if updates.password:
        attributes["password"] = updates.password
    metadata = {}
    if updates.first_name is not None:
        metadata["firstName"] = updates.first_name
    if updates.last_name is not None:
        metadata["lastName"] = updates.last_name
    if metadata:
        attributes["user_metadata"] = metadata

    if attributes:
        try:
            get_supabase_admin().auth.admin.update_user_by_id(str(user_id), attributes)
        except AuthError as e:
            logger.warning(f"Auth update failed for user {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Auth update failed: {e}"
            )

    user = db.get(User, user_id)
    for field in ("email", "first_name", "last_name", "role"):
        value = getattr(updates, field)
        if value is not None:
            setattr(user, field, value)

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Profile update failed for user {user_id}: {e}", exc_info=True)
        raise DataAccessError(f"User update failed: {e}") from e

    business_id = str(user.business_id) if user.business_id else None
    return {
        "user_id": str(user.id),
        "email": user.email,
        "role": user.role,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "business_id": business_id,
        "restaurant_id": _restaurant_for(db, business_id),
    }
