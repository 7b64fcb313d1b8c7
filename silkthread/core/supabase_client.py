# silkthread/core/supabase_client.py
from functools import lru_cache

from supabase import Client, ClientOptions, create_client

from silkthread.core.config import get_settings


def _options() -> ClientOptions:
    # Every table call gets a hard timeout; the cart store retries on top.
    settings = get_settings()
    return ClientOptions(postgrest_client_timeout=settings.CART_STORE_TIMEOUT)


@lru_cache
def supabase_public() -> Client:
    """
    Create a Supabase client with the anon/public key.

    Use cases:
      - reading the public catalog (products, categories, product types)

    Note: This client still respects RLS.
    """
    settings = get_settings()
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY, _options())


@lru_cache
def supabase_admin() -> Client:
    """
    Create a Supabase client with the service role key.

    Use cases:
      - reading/writing the cart_snapshots table (not exposed via RLS)

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    settings = get_settings()
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY,
        _options(),
    )
