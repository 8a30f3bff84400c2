"""
Duet - Supabase Client

Thread-safe factory for Supabase clients, one cached client per set of
credentials.
"""

from functools import lru_cache

from supabase import Client, create_client

from src.config.settings import Settings, get_settings


def get_supabase_client(settings: Settings | None = None) -> Client:
    """Return the cached Supabase client for the given (or environment) settings.

    Raises:
        RuntimeError: If Supabase credentials are not configured.
    """
    settings = settings or get_settings()
    if not settings.supabase_enabled:
        raise RuntimeError("DUET_SUPABASE_URL and DUET_SUPABASE_ANON_KEY must be set")
    return _client_for(settings.supabase_url, settings.supabase_anon_key)


@lru_cache(maxsize=4)
def _client_for(url: str, anon_key: str) -> Client:
    return create_client(url, anon_key)
