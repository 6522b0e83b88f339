"""Application configuration with validation."""

from enum import Enum
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List


class Environment(str, Enum):
    """Application environment."""
    DEVELOPMENT = "development"
    PRODUCTION = "production"


class ConfigurationError(Exception):
    """Raised when application configuration is invalid for the environment."""
    pass


class Settings(BaseSettings):
    """
    Application settings with validation.

    Uses Pydantic for configuration validation, preventing
    common security issues like wildcard CORS.
    """

    # Environment
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production)"
    )

    # CORS Configuration
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origins (comma-separated)"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./linkvault.db",
        description="Database connection URL"
    )
    # Connection pool tuning (PostgreSQL only; ignored for SQLite).
    db_pool_size: int = Field(
        default=5,
        description="Number of persistent database connections"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Extra connections allowed during traffic bursts"
    )
    db_pool_timeout: int = Field(
        default=30,
        description="Seconds to wait for a connection from the pool before raising"
    )
    db_pool_recycle: int = Field(
        default=1800,
        description="Seconds before a connection is recycled (prevents stale connections)"
    )

    # Authentication
    # JWT_SECRET_KEY: signing key for session tokens. Default is insecure; override in production.
    # AUTH_ENABLED: when False, every request runs as DEV_USER_ID (dev mode).
    jwt_secret_key: str = Field(
        default="dev-insecure-key-change-me",
        description="JWT signing secret (override in production)"
    )
    jwt_algorithm: str = Field(default="HS256")
    auth_enabled: bool = Field(
        default=False,
        description="Enable JWT authentication (False for development)"
    )
    dev_user_id: str = Field(
        default="local-user",
        description="Caller identity used when authentication is disabled"
    )

    # Classification advisor
    # LiteLLM model string, e.g. "groq/llama-3.3-70b-versatile", "openai/gpt-4o-mini".
    # Empty string = advisor disabled (no suggestions are ever made).
    classifier_model: str = Field(
        default="",
        description="LiteLLM model for tag/folder suggestions (empty = disabled)"
    )
    classifier_api_key: str = Field(
        default="",
        description="API key for the classification provider"
    )
    classifier_api_base: str = Field(
        default="",
        description="Base URL for the classification provider (optional)"
    )
    classifier_timeout: int = Field(
        default=15,
        description="Seconds before a classification call is abandoned"
    )
    auto_tag_enabled: bool = Field(
        default=True,
        description="Ask the advisor for tags when a link is created without any"
    )

    # Link metadata lookup (title and favicon for a URL)
    metadata_timeout: float = Field(
        default=5.0,
        description="Seconds before a metadata page fetch is abandoned"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="json",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    def get_cors_origins(self) -> List[str]:
        """
        Get CORS origins as a list.

        Parses comma-separated string and validates no wildcards.
        """
        origins = [origin.strip() for origin in self.cors_allowed_origins.split(',') if origin.strip()]

        # SECURITY: Prevent wildcard CORS
        if "*" in origins:
            raise ValueError(
                "Wildcard CORS (*) not allowed. "
                "Specify explicit origins in CORS_ALLOWED_ORIGINS"
            )

        return origins

    @property
    def classifier_configured(self) -> bool:
        return bool(self.classifier_model and self.classifier_api_key)

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    def validate_production_config(self) -> None:
        """Validate configuration for production environment.

        In production, fails startup if security-critical settings use insecure defaults.
        In development, logs warnings but allows startup.

        Raises:
            ConfigurationError: If production config is insecure.
        """
        errors: list[str] = []

        if self.jwt_secret_key == "dev-insecure-key-change-me":
            errors.append(
                "JWT_SECRET_KEY is using the default insecure value. "
                "Generate a secure key: openssl rand -hex 32"
            )

        if not self.auth_enabled:
            errors.append(
                "AUTH_ENABLED is false. "
                "Authentication must be enabled in production."
            )

        origins = self.get_cors_origins()
        localhost_origins = [o for o in origins if "localhost" in o or "127.0.0.1" in o]
        if localhost_origins:
            errors.append(
                f"CORS allows localhost origins: {localhost_origins}. "
                "Remove localhost origins for production."
            )

        if errors:
            if self.environment == Environment.PRODUCTION:
                raise ConfigurationError(
                    "Production configuration is insecure:\n  - " + "\n  - ".join(errors)
                )
            # In development, just return; main.py logs the warnings
            return

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


# Global settings instance
settings = Settings()
