"""Configuration management for the Politirate service."""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = Field(default="Politirate")
    version: str = Field(default="0.1.0")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")

    database_url: str = Field(default="postgresql+psycopg://politirate:politirate@db:5432/politirate")

    aws_region: str = Field(default="us-east-1")
    s3_endpoint_url: str | None = Field(default=None)
    audit_log_bucket: str = Field(default="politirate-audit-logs")
    audit_log_prefix: str = Field(default="audit/records")
    audit_log_sample_rate: float = Field(default=1.0)

    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=True)
    otel_exporter_endpoint: str | None = Field(default=None)

    jwt_algorithm: str = Field(default="HS256")
    jwt_secret_key: str = Field(default="politirate-dev-secret-change-me")
    access_token_expire_minutes: int = Field(default=30)
    refresh_token_expire_days: int = Field(default=7)

    default_maintenance_message: str = Field(
        default="The site is currently down for maintenance. We will be back shortly."
    )
    default_contact_email: str = Field(default="support@politirate.com")
    max_poll_questions: int = Field(default=50)
    max_poll_options: int = Field(default=20)

    seed_admin_email: str = Field(default="admin@politirate.local")
    seed_admin_password: str = Field(default="change-me-admin")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
