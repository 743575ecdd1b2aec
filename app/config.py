"""
Application configuration with Pydantic Settings for validation and type safety.
Supports environment-specific configurations and .env file loading.
"""

from enum import Enum
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator


class Environment(str, Enum):
    """Application environment types"""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """
    Application settings with validation.
    Settings are loaded from environment variables or .env file.
    """

    # Application settings
    app_name: str = Field(default="FitMeal Pro", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT, description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=4000, ge=1, le=65535, description="Server port")
    max_request_size: int = Field(
        default=500 * 1024, ge=1, description="Maximum request body size in bytes"
    )

    # Database settings
    database_url: str = Field(
        default="postgresql+psycopg2://postgres@localhost:5432/fitmeal",
        description="SQLAlchemy database URL",
    )
    db_echo: bool = Field(default=False, description="SQLAlchemy echo SQL statements")
    db_init_attempts: int = Field(
        default=8, ge=1, description="Database initialization retry attempts"
    )
    db_init_delay_sec: float = Field(
        default=2.0, ge=0, description="Delay between DB init attempts"
    )

    # Authentication
    jwt_secret: str = Field(
        default="change-me-in-production", description="Secret used to sign JWTs"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_minutes: int = Field(default=15, ge=1)
    refresh_token_expire_days: int = Field(default=30, ge=1)
    invitation_expire_days: int = Field(default=7, ge=1)
    max_login_attempts: int = Field(default=5, ge=1)
    login_lockout_minutes: int = Field(default=15, ge=1)

    # Stripe
    stripe_secret_key: str = Field(default="", description="Stripe secret key")
    stripe_webhook_secret: str = Field(
        default="", description="Stripe webhook signing secret"
    )
    stripe_price_starter: str = Field(default="price_starter")
    stripe_price_professional: str = Field(default="price_professional")
    stripe_price_enterprise: str = Field(default="price_enterprise")
    frontend_url: str = Field(
        default="http://localhost:4000", description="Public URL of the web client"
    )

    # OpenAI recipe generation
    openai_api_key: str = Field(default="", description="OpenAI API key")
    openai_model: str = Field(default="gpt-4o-mini", description="OpenAI chat model")
    openai_max_retries: int = Field(default=3, ge=1, le=10)
    openai_retry_base_delay_sec: float = Field(
        default=1.0, ge=0, description="First backoff delay between generation attempts"
    )

    # Mailgun
    mailgun_api_key: str = Field(default="", description="Mailgun API key")
    mailgun_domain: str = Field(default="", description="Mailgun sending domain")
    mailgun_from: str = Field(
        default="FitMeal Pro <no-reply@fitmeal.pro>", description="Sender address"
    )
    mailgun_base_url: str = Field(default="https://api.mailgun.net/v3")

    # Object storage
    media_root: str = Field(default="media", description="Root directory for uploads")
    media_url_prefix: str = Field(default="/media", description="Public media URL prefix")

    # Tiers
    default_tier: Optional[str] = Field(
        default="starter",
        description="Tier applied to trainers without a purchased subscription",
    )
    enforce_tier_limits: bool = Field(default=True)

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="Log format string",
    )

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:4000", "http://localhost:5173"],
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(
        default=True, description="Allow CORS credentials"
    )
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        description="Allowed HTTP methods",
    )
    cors_allow_headers: list[str] = Field(
        default=["Authorization", "Content-Type", "Stripe-Signature"],
        description="Allowed HTTP headers",
    )

    # API settings
    api_prefix: str = Field(default="/api", description="API route prefix")
    api_title: str = Field(default="FitMeal Pro API", description="API documentation title")
    api_description: str = Field(
        default="Meal planning for trainers and their customers",
        description="API documentation description",
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        """Validate and normalize environment value"""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    @field_validator("default_tier", mode="before")
    @classmethod
    def empty_tier_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.environment == Environment.PRODUCTION

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.environment == Environment.DEVELOPMENT

    def is_testing(self) -> bool:
        """Check if running in testing environment"""
        return self.environment == Environment.TESTING


# Global settings instance
settings = Settings()
