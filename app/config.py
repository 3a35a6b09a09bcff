# app/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./mobile_sync.db"
    DATABASE_ECHO: bool = False
    AUTO_CREATE_TABLES: bool = True

    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]
    ALLOWED_HOSTS: List[str] = ["*"]

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # text | json

    # Aturan validasi untuk mobile order
    VALIDATION_REQUIRE_PAYMENT_METHOD: bool = True
    VALIDATION_REQUIRE_CUSTOMER: bool = True
    VALIDATION_REQUIRE_SALES_REP: bool = True
    VALIDATION_REQUIRE_ITEMS: bool = True

    # Opt-in uniqueness guard on the client-local order id
    REJECT_DUPLICATE_CLIENT_IDS: bool = False

    DEFAULT_OPERATOR: str = "desktop"
    SYNC_LOG_DEFAULT_LIMIT: int = 20

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding='utf-8', extra='ignore')

settings = Settings()
