# backend/forum/core/config.py
from pydantic import Field
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    app_name: str = "Literary Lions"
    environment: str = "development"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./forum.db"
    auto_create_tables: bool = True

    # Security
    secret_key: str = "dev-secret-key-change-in-production"

    # Session
    session_expire_hours: int = Field(default=24, gt=0)
    cookie_secure: bool = False  # Set True in production with HTTPS

    # Captcha cookie lifetime
    captcha_ttl_seconds: int = Field(default=60, gt=0, le=3600)

    # Frontend
    frontend_url: str = "http://localhost:5173"

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
