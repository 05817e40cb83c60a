from functools import lru_cache

from supabase import Client, create_client

from app.config import settings


@lru_cache
def get_supabase() -> Client:
    """Supabase client for password sign-in, created on first use"""
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


@lru_cache
def get_supabase_admin() -> Client:
    """Service-role client; needed to revoke a user's session"""
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_KEY)
