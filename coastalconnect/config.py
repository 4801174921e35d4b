from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized runtime configuration loaded from environment variables.
    """

    APP_NAME: str = "coastalConnect"
    ALLOWED_ORIGINS: list[str] = ["*"]
    LOG_LEVEL: str = "INFO"

    AUTH_BACKEND: Literal["rest", "supabase"] = "rest"
    API_BASE_URL: str = "http://localhost:8080"
    AUTH_VERIFY_PATH: str = "/api/auth/verify"
    AUTH_LOGOUT_PATH: str = "/api/auth/logout"
    AUTH_EMAIL_PATH: str = "/api/auth/email"
    AUTH_REGISTER_PATH: str = "/api/auth/register"
    AUTH_OAUTH_PATH: str = "/api/auth/{provider}"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    STORAGE_PATH: str = ".coastalconnect/storage.json"
    AUTH_TOKEN_KEY: str = "authToken"
    PENDING_BOOKING_KEY: str = "pendingBooking"

    ROOT_PATH: str = "/"
    LOGIN_PATH: str = "/login"

    SUPABASE_URL: str | None = None
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_ANON_KEY: str | None = None

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    return Settings()
