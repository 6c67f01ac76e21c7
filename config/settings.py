"""
Centralized configuration management using Pydantic Settings.

All environment variables and configuration in one place.
Type-safe with validation.
"""

from typing import Optional, Literal
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # ==================== Database Configuration ====================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./aisync.db",
        description="Database connection string (PostgreSQL or SQLite)"
    )
    db_pool_size: int = Field(default=10, ge=1, le=100, description="Database pool size")
    db_max_overflow: int = Field(default=20, ge=0, le=200, description="Max overflow connections")
    db_pool_recycle: int = Field(default=1800, ge=300, description="Pool recycle time (seconds)")
    db_pool_pre_ping: bool = Field(default=True, description="Enable pool pre-ping")
    db_echo: bool = Field(default=False, description="Echo SQL queries")

    # ==================== API Configuration ====================
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, ge=1024, le=65535, description="API port")
    cors_allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    # ==================== Monitoring & Logging ====================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # ==================== Security ====================
    secret_key: str = Field(
        ...,  # Required field - no default
        min_length=32,
        description="Secret key for JWT tokens (must be at least 32 characters)"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    access_token_expire_days: int = Field(
        default=7,
        ge=1,
        le=90,
        description="Session token expiry (days)"
    )
    jwt_leeway_seconds: int = Field(
        default=0,
        ge=0,
        le=300,
        description="Clock skew tolerance when checking token expiry"
    )
    bcrypt_rounds: int = Field(
        default=12,
        ge=4,
        le=31,
        description="bcrypt work factor"
    )
    password_reset_token_expire_seconds: int = Field(
        default=3600,
        ge=60,
        description="Password reset token expiry (seconds)"
    )
    email_verification_expire_minutes: int = Field(
        default=15,
        ge=1,
        le=1440,
        description="Email change verification code expiry (minutes)"
    )

    # Two-factor authentication
    totp_issuer: str = Field(default="AISync", description="Issuer shown in authenticator apps")
    totp_secret_length: int = Field(
        default=32,
        ge=32,
        le=64,
        description="Length of generated base32 TOTP secrets"
    )
    totp_valid_window: int = Field(
        default=2,
        ge=0,
        le=10,
        description="Accepted clock drift in time steps, in each direction"
    )

    # ==================== Frontend URLs ====================
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Frontend application URL"
    )
    password_reset_url: str = Field(
        default="http://localhost:3000/reset-password",
        description="Frontend password reset page URL"
    )

    # ==================== Email Configuration ====================
    email_enabled: bool = Field(default=False, description="Enable email sending")
    email_backend: str = Field(default="smtp", description="Email backend (smtp or console)")
    email_host: str = Field(default="smtp.gmail.com", description="SMTP host")
    email_port: int = Field(default=587, ge=1, le=65535, description="SMTP port")
    email_use_tls: bool = Field(default=True, description="Use TLS for email")
    email_use_ssl: bool = Field(default=False, description="Use SSL for email")
    email_host_user: Optional[str] = Field(default=None, description="Email account username")
    email_host_password: Optional[str] = Field(default=None, description="Email account password or app password")
    email_from_address: str = Field(
        default="noreply@aisyncs.org",
        description="Default FROM email address"
    )
    email_from_name: str = Field(
        default="AISync",
        description="Default FROM name"
    )

    # ==================== Development ====================
    debug: bool = Field(default=False, description="Debug mode")
    testing: bool = Field(default=False, description="Testing mode")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Ensure database URL points at a supported backend."""
        if not v.startswith(("postgresql://", "postgresql+asyncpg://", "sqlite+aiosqlite://")):
            raise ValueError("Database URL must use PostgreSQL or SQLite (aiosqlite)")
        return v

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Validate secret key for production use."""
        if len(v) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters long")
        if v in ["your-secret-key-change-this-in-production",
                 "change-me-in-production", "development-key-not-secure"]:
            raise ValueError("SECRET_KEY must be changed from default value in production")
        return v

    @property
    def async_database_url(self) -> str:
        """Get async database URL for SQLAlchemy."""
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.database_url

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug or self.testing

    @property
    def cors_origins(self) -> list[str]:
        """Allowed CORS origins with blanks removed."""
        return [origin.strip() for origin in self.cors_allowed_origins.split(",") if origin.strip()]

    def validate_production_config(self) -> list[str]:
        """Get list of production configuration issues."""
        issues = []

        if self.is_sqlite and not self.is_development:
            issues.append("DATABASE_URL should point at PostgreSQL in production")

        if self.email_enabled and not (self.email_host_user and self.email_host_password):
            issues.append("EMAIL_HOST_USER and EMAIL_HOST_PASSWORD required when EMAIL_ENABLED is set")

        if self.bcrypt_rounds < 12 and not self.is_development:
            issues.append("BCRYPT_ROUNDS below 12 is only intended for tests")

        return issues


# Global settings instance
settings = Settings()
