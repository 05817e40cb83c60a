from typing import Optional
import logging

from jose import jwt, JWTError

from app.config import settings

logger = logging.getLogger(__name__)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Verify a Supabase Auth access token with the project's JWT secret.
    Returns the claims, or None when the token is invalid or expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SUPABASE_JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
        )
    except JWTError as e:
        logger.info(f"Rejected access token: {e}")
        return None
