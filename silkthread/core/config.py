# silkthread/core/config.py
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - SUPABASE_URL
      - SUPABASE_KEY (anon key)
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Optional:
      - SUPABASE_SERVICE_ROLE_KEY (only used for admin Supabase client)
      - CART_STORE_* (where shopper carts are persisted)
      - STORE_* (brand / WhatsApp number used at checkout)
    """

    PROJECT_NAME: str = "Silk Thread Storefront API"
    API_V1_STR: str = "/api/v1"

    # Supabase config
    SUPABASE_URL: str
    SUPABASE_KEY: str

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    # Service role key bypasses RLS (backend only)
    SUPABASE_SERVICE_ROLE_KEY: str | None = None

    # Cart persistence
    CART_STORAGE_KEY: str = "cart"
    CART_STORE_BACKEND: Literal["memory", "file", "supabase"] = "memory"
    CART_STORE_DIR: str = ".carts"
    CART_STORE_TABLE: str = "cart_snapshots"
    CART_STORE_TIMEOUT: float = 5.0  # seconds, per request
    CART_STORE_RETRIES: int = 3
    CART_STORE_BACKOFF: float = 0.5  # seconds, first retry delay
    CART_SESSION_CACHE_SIZE: int = 1024  # shopper carts kept in memory per process

    # Checkout
    STORE_BRAND_NAME: str = "Silk Thread Boutique"
    STORE_WHATSAPP_NUMBER: str | None = None

    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
