"""Configuration management for the ledger query service."""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = Field(default="Ledger Query Service")
    version: str = Field(default="0.1.0")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")

    database_url: str = Field(default="postgresql+psycopg://ledger:ledger@db:5432/ledger")

    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=True)
    otel_exporter_endpoint: str | None = Field(default=None)

    jwt_algorithm: str = Field(default="HS256")
    jwt_secret_key: str = Field(default="change-me-in-production")
    access_token_expire_minutes: int = Field(default=15)

    ledger_default_limit: int = Field(default=100, ge=0)
    ledger_max_limit: int = Field(default=10_000, gt=0)
    ledger_grouping_window_seconds: int = Field(default=10, gt=0)
    ledger_incognito_scope: str = Field(default="incognito")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
