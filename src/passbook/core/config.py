"""Application configuration management using pydantic-settings."""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="passbook-backend", description="Application name")
    environment: Literal["development", "testing", "staging", "production"] = Field(
        default="development", description="Runtime environment"
    )
    debug: bool = Field(default=False, description="Debug mode flag")
    secret_key: str = Field(
        default="dev-secret-key-change-in-production",
        description="Secret key for verifying actor tokens",
    )

    # API
    api_v1_prefix: str = Field(default="/api/v1", description="API v1 prefix")
    allowed_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="CORS allowed origins",
    )

    # Database
    db_host: str = Field(default="localhost", description="PostgreSQL host")
    db_port: int = Field(default=5432, description="PostgreSQL port")
    db_user: str = Field(default="postgres", description="PostgreSQL user")
    db_password: str = Field(default="postgres", description="PostgreSQL password")
    db_name: str = Field(default="passbook", description="PostgreSQL database name")

    # Actor tokens
    access_token_expire_minutes: int = Field(
        default=30, description="Access token expiration in minutes"
    )

    # Ticket redemption
    redemption_cooldown_seconds: int = Field(
        default=300,
        ge=0,
        description="Minimum seconds between two redemptions of the same ticket",
    )
    store_timezone: str = Field(
        default="Asia/Tokyo",
        description="IANA time zone used for store-local calendar days",
    )
    expiring_soon_days: int = Field(
        default=7, ge=0, description="Days before expiry a ticket is flagged"
    )
    history_page_size: int = Field(
        default=20, ge=1, le=100, description="Default redemption history page size"
    )
    store_history_limit: int = Field(
        default=50, ge=1, description="Maximum rows in a store's daily history"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="json", description="Log output format"
    )

    @computed_field
    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @computed_field
    @property
    def database_url_sync(self) -> str:
        """Construct synchronous database URL for migrations."""
        return (
            f"postgresql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def redemption_cooldown(self) -> timedelta:
        """Cooldown window shared by all tickets."""
        return timedelta(seconds=self.redemption_cooldown_seconds)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
