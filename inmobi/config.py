"""
Configuration management using Pydantic settings.
Handles database URL, JWT secrets, third-party provider keys and cache settings.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import Optional, List
from functools import lru_cache
import os


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    # Application configuration
    app_name: str = "Inmobi API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    testing: bool = False

    # Database configuration
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/inmobi"
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # JWT configuration
    jwt_secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    jwt_refresh_token_expire_days: int = 7

    # Image uploads
    upload_dir: str = "./uploads"
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    max_files_per_upload: int = 10

    # API configuration
    api_v1_prefix: str = "/api/v1"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173", "https://inmobi.mobi"]

    # Pagination defaults
    default_page_size: int = 20
    max_page_size: int = 100

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000
    # Honor X-Forwarded-For only when a reverse proxy sets it
    trust_proxy_headers: bool = False

    # Property cache
    cache_ttl_seconds: int = 300

    # Public site
    site_url: str = "https://inmobi.mobi"
    sitemap_dir: str = "./public"

    # Outbound HTTP
    external_timeout_seconds: float = 10.0
    external_max_retries: int = 2
    external_retry_backoff_seconds: float = 0.5

    # Stripe
    stripe_secret_key: Optional[str] = None
    stripe_webhook_secret: Optional[str] = None
    stripe_api_base: str = "https://api.stripe.com"
    stripe_premium_price_id: str = "price_premium_monthly"
    stripe_enterprise_price_id: str = "price_enterprise_monthly"

    # SendGrid
    sendgrid_api_key: Optional[str] = None
    sendgrid_api_base: str = "https://api.sendgrid.com"
    email_from: str = "info@inmobi.mobi"

    # Anthropic
    anthropic_api_key: Optional[str] = None
    anthropic_api_base: str = "https://api.anthropic.com"
    anthropic_model: str = "claude-3-5-sonnet-latest"
    anthropic_version: str = "2023-06-01"

    # Nominatim
    nominatim_api_base: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "inmobi-api/1.0 (info@inmobi.mobi)"

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v):
        """Ensure an async driver is used."""
        if v and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v and v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def validate_jwt_secret_key(cls, v):
        """Validate JWT secret key strength."""
        if not v:
            raise ValueError("JWT_SECRET_KEY is required")
        if len(v) < 32 and v != "your-secret-key-change-in-production":
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("cache_ttl_seconds")
    @classmethod
    def validate_cache_ttl(cls, v):
        """Property cache entries live between two and five minutes."""
        if not 120 <= v <= 300:
            raise ValueError("CACHE_TTL_SECONDS must be between 120 and 300")
        return v

    @field_validator("upload_dir", mode="before")
    @classmethod
    def create_upload_directories(cls, v):
        """Ensure the upload directory exists."""
        if v and not os.path.exists(v):
            os.makedirs(v, exist_ok=True)
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one instance of settings throughout the app lifecycle.
    """
    return Settings()


# Global settings instance
settings = get_settings()
