"""
umkm_registry/core/config.py

Purpose: Application configuration

- Loads environment variables
- Selects the storage backend (MongoDB when configured, local otherwise)
- Centralizes auth rules (password length, default admin password)
- Validates configuration on startup
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Optional, Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # Remote backend (MongoDB). Leaving the URL unset switches to local storage.
    MONGODB_URL: Optional[str] = Field(
        default=None,
        description="MongoDB connection URI; unset means local storage fallback"
    )
    MONGODB_DB_NAME: str = Field(
        default="umkm_registry",
        description="MongoDB database name"
    )

    # Local storage fallback
    LOCAL_STORAGE_PATH: Optional[str] = Field(
        default="data/local_storage.json",
        description="JSON file backing the local key/value store; unset keeps it in memory"
    )

    # Session Management
    SESSION_TIMEOUT_MINUTES: int = Field(
        default=60 * 24,
        description="Session inactivity timeout in minutes"
    )

    # Credentials
    MIN_PASSWORD_LENGTH: int = Field(
        default=6,
        description="Minimum length of a new password"
    )
    DEFAULT_ADMIN_PASSWORD: str = Field(
        default="admin",
        description="Shared password of the RW admin accounts until they change it"
    )

    # Business profiles
    REPAIR_INVALID_OWNER_ID: bool = Field(
        default=False,
        description="Mint a fresh owner UUID instead of rejecting a malformed one on create"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    # Security
    SECRET_KEY: str = Field(
        default="change-me-in-production",
        description="Application secret key"
    )

    @validator("SECRET_KEY")
    def validate_secret_key(cls, v, values):
        """Ensure secret key is changed in production."""
        if values.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed in production environment")
        return v

    @validator("MIN_PASSWORD_LENGTH")
    def validate_min_password_length(cls, v):
        """A minimum below one character would accept empty passwords."""
        if v < 1:
            raise ValueError("MIN_PASSWORD_LENGTH must be at least 1")
        return v

    @property
    def has_remote_backend(self) -> bool:
        """True when the MongoDB backend should be used."""
        return bool(self.MONGODB_URL)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if settings.has_remote_backend and not settings.MONGODB_DB_NAME:
        errors.append("MONGODB_DB_NAME is required when MONGODB_URL is set")

    # Production-specific validations
    if settings.is_production:
        if not settings.has_remote_backend:
            errors.append("MONGODB_URL is required in production")
        if settings.REPAIR_INVALID_OWNER_ID:
            errors.append("REPAIR_INVALID_OWNER_ID must be disabled in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
