import os
from functools import lru_cache

from dotenv import load_dotenv, find_dotenv

# Values from a local .env never override the real environment
_env_path = find_dotenv(usecwd=True)
if _env_path:
    load_dotenv(_env_path, override=False)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # Carts/orders always live here; the SQL catalogs read from it too
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./autoparts.db")
    # memory | legacy | final
    CATALOG_BACKEND: str = os.getenv("CATALOG_BACKEND", "memory").lower()
    CATALOG_DATA_DIR: str = os.getenv("CATALOG_DATA_DIR", "./data")
    # Listing returns an empty page instead of a 500 when the store fails
    CATALOG_DEGRADE_ON_ERROR: bool = _flag("CATALOG_DEGRADE_ON_ERROR", "1")

    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "24"))
    MAX_PAGE_SIZE: int = int(os.getenv("MAX_PAGE_SIZE", "100"))
    SEARCH_DEFAULT_LIMIT: int = int(os.getenv("SEARCH_DEFAULT_LIMIT", "10"))

    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "session_id")
    SESSION_HEADER_NAME: str = os.getenv("SESSION_HEADER_NAME", "X-Session-Id")
    # 30 days by default so a shopper keeps the same cart across visits
    SESSION_COOKIE_MAX_AGE: int = int(os.getenv("SESSION_COOKIE_MAX_AGE", str(30 * 24 * 60 * 60)))

    ORDER_PAYMENT_METHOD: str = os.getenv("ORDER_PAYMENT_METHOD", "whatsapp")
    WHATSAPP_BUSINESS_NUMBER: str = os.getenv("WHATSAPP_BUSINESS_NUMBER", "254700000000")
    CURRENCY: str = os.getenv("CURRENCY", "KES")

    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


@lru_cache
def get_settings():
    return Settings()
