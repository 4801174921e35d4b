from functools import lru_cache

from supabase import Client, create_client

from .config import get_settings


def _create(url: str | None, key: str | None) -> Client:
    if not url or not key:
        raise RuntimeError("SUPABASE_URL and a Supabase key must be set to use the supabase auth backend.")
    return create_client(url, key)


@lru_cache
def get_supabase_client() -> Client:
    """
    Returns a singleton Supabase client configured with service role credentials.
    Used for token verification, profile lookups and server-side sign out.
    """
    settings = get_settings()
    return _create(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


@lru_cache
def get_supabase_anon_client() -> Client:
    """
    Returns a Supabase client using the anon key for auth flows (password login/signup).
    """
    settings = get_settings()
    return _create(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY or settings.SUPABASE_SERVICE_ROLE_KEY)
