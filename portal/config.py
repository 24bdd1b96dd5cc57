"""
Application configuration using pydantic-settings.
Values come from the environment or .env; DATABASE_URL is the only required one.
"""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_env: str = "development"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_base_url: str = "http://localhost:8000"
    log_level: str = "INFO"
    allowed_origins: str = ""  # Comma-separated; localhost is added in development

    # Database
    database_url: str
    database_pool_size: int = 20
    database_max_overflow: int = 10

    # ServiceM8
    servicem8_api_key: str = ""
    servicem8_base_url: str = "https://api.servicem8.com/api_1.0"
    servicem8_timeout_seconds: float = Field(default=10.0, gt=0)

    # Sync
    sync_on_read: bool = True  # Pull a linked customer's jobs when their bookings are listed
    sync_worker_enabled: bool = False
    sync_interval_seconds: int = Field(default=900, ge=60)

    # Sentry
    sentry_dsn: str = ""

    @property
    def servicem8_configured(self) -> bool:
        return bool(self.servicem8_api_key)

    @property
    def cors_origins(self) -> list[str]:
        origins = [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        if self.app_env == "development":
            origins += ["http://localhost:3000", "http://localhost:5173"]
        if self.app_base_url not in origins:
            origins.append(self.app_base_url)
        return origins


@lru_cache()
def get_settings() -> Settings:
    return Settings()
