# app/core/config.py
from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (SQLAlchemy URL, e.g. postgresql+psycopg2://... or sqlite:///...)
      - AUTH_JWT_SECRET (HS256 secret shared with the identity provider)

    Cart tuning (all optional):
      - CART_SESSION_COOKIE / CART_SESSION_MAX_AGE_DAYS / CART_SESSION_COOKIE_SECURE
      - CART_PRICE_TOLERANCE: max allowed drift between client and server unit price
      - CART_MAX_LINE_QUANTITY: upper bound on a single line's quantity
      - CART_MAX_ATTEMPTS / CART_RETRY_DELAY: bounded retries for transient DB errors
    """

    PROJECT_NAME: str = "Storefront Cart API"
    API_PREFIX: str = "/api"

    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Database
    DATABASE_URL: str
    DB_REQUIRE_SSL: bool = False
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # JWT verification (backend-side)
    AUTH_JWT_SECRET: str
    AUTH_JWT_ALG: str = "HS256"
    AUTH_JWT_AUDIENCE: str | None = None

    # Guest cart session cookie
    CART_SESSION_COOKIE: str = "cart_sid"
    CART_SESSION_MAX_AGE_DAYS: int = 7
    CART_SESSION_COOKIE_SECURE: bool = False

    # Cart store behaviour
    CART_PRICE_TOLERANCE: Decimal = Decimal("0.01")
    CART_MAX_LINE_QUANTITY: int = 9999
    CART_MAX_ATTEMPTS: int = 3
    CART_RETRY_DELAY: float = 0.05

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
