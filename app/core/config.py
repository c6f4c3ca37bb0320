# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Postgres connection string, or sqlite:// for local runs)
      - JWT_SECRET (HS256 signing secret for session tokens)

    Optional:
      - SMTP_* (verification emails; sending is skipped with a warning if unset)
      - SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY (avatar storage)

    The object is frozen: it is built once at startup and handed to the
    token service, mail client and storage helpers.
    """

    PROJECT_NAME: str = "Contacts API"
    API_PREFIX: str = "/api"
    DEBUG: bool = False

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    CORS_ORIGINS: list[str] = ["*"]

    # Public base URL used to build verification links
    APP_BASE_URL: str = "http://localhost:3000"

    # DB config
    DATABASE_URL: str

    # Session tokens
    JWT_SECRET: str
    JWT_ALG: str = "HS256"
    JWT_EXPIRE_HOURS: int = 23

    # bcrypt work factor
    BCRYPT_ROUNDS: int = 10

    # SMTP
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 465
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM_EMAIL: str | None = None
    SMTP_FROM_NAME: str = "Contacts API"
    SMTP_USE_TLS: bool = False
    SMTP_USE_SSL: bool = True

    # Supabase Storage (avatars)
    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    AVATAR_BUCKET: str = "avatars"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
