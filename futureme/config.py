"""
Application configuration management using Pydantic Settings.

This module provides a type-safe, centralized configuration system
that loads from environment variables with sensible defaults.
"""

import sys

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    """
    Application configuration loaded from environment variables.

    All settings can be overridden via .env file or environment variables.
    Settings are read once at startup; the message processor never reloads them.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===== Encryption =====
    APP_ENCRYPTION_KEY: str | None = Field(
        default=None,
        description="Shared secret used to derive the AES key for message subjects and bodies"
    )

    # ===== Database Configuration =====
    SUPABASE_URL: str | None = Field(
        default=None,
        description="Supabase project URL"
    )

    SUPABASE_SERVICE_KEY: str | None = Field(
        default=None,
        description="Supabase service role key (for server-side operations, bypasses RLS)"
    )

    # ===== Email Configuration =====
    RESEND_API_KEY: str | None = Field(
        default=None,
        description="Resend API key used by the delivery transport"
    )

    FROM_EMAIL: str = Field(
        default="onboarding@resend.dev",
        description="Sender address for delivered messages"
    )

    FROM_NAME: str = Field(
        default="FutureMe",
        description="Sender display name for delivered messages"
    )

    # ===== Message Processor =====
    ENABLE_MESSAGE_PROCESSOR: bool = Field(
        default=True,
        description="Start the message processor alongside the web server"
    )

    @field_validator('ENABLE_MESSAGE_PROCESSOR', 'DEBUG', mode='before')
    @classmethod
    def parse_bool_string(cls, v):
        """Parse boolean from string values (Railway env vars are strings)."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes", "on")
        return False

    PROCESSOR_INTERVAL_SECONDS: int = Field(
        default=60,
        ge=1,
        le=3600,
        description="Seconds between processing passes"
    )

    PROCESSOR_WARMUP_SECONDS: float = Field(
        default=5.0,
        ge=0,
        le=300,
        description="Delay before the first pass after startup"
    )

    PROCESSOR_BATCH_LIMIT: int | None = Field(
        default=None,
        ge=1,
        description="Max messages selected per pass (unset = no cap)"
    )

    SEND_INTERVAL_SECONDS: float = Field(
        default=0.1,
        ge=0,
        le=60,
        description="Minimum delay between consecutive sends within a pass"
    )

    DISPATCH_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Upper bound for a single transport call"
    )

    # ===== Server Configuration =====
    ENVIRONMENT: str = Field(
        default="development",
        description="Deployment environment name"
    )

    DEBUG: bool = Field(
        default=True,
        description="Enable debug mode"
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    API_PORT: int = Field(
        default=3001,
        ge=1024,
        le=65535,
        description="API server port"
    )

    APP_BASE_URL: str = Field(
        default="https://futureme.app",
        description="Public URL linked from delivered emails"
    )

    # ===== Security Settings =====
    ADMIN_SECRET_KEY: str | None = Field(
        default=None,
        description="Value expected in the X-Admin-Key header for admin routes"
    )

    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use '*' for all (dev only)."
    )

    @property
    def allowed_origins_list(self) -> list[str]:
        """Get list of allowed CORS origins.

        In production '*' is replaced by APP_BASE_URL.
        """
        if self.ALLOWED_ORIGINS == "*":
            if self.ENVIRONMENT != "production":
                return ["*"]
            print(
                "⚠️  WARNING: ALLOWED_ORIGINS='*' is not secure in production. "
                f"Using APP_BASE_URL ({self.APP_BASE_URL}) instead.",
                file=sys.stderr
            )
            return [self.APP_BASE_URL]
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    # ===== Computed Properties =====

    @property
    def supabase_configured(self) -> bool:
        """Check if Supabase is properly configured."""
        return (
            self.SUPABASE_URL is not None
            and self.SUPABASE_SERVICE_KEY is not None
        )

    @property
    def email_configured(self) -> bool:
        """Check if the Resend transport can send."""
        return self.RESEND_API_KEY is not None

    @property
    def encryption_configured(self) -> bool:
        return bool(self.APP_ENCRYPTION_KEY)

    @property
    def admin_auth_configured(self) -> bool:
        return bool(self.ADMIN_SECRET_KEY)


# Global configuration instance
# Import this in other modules: from futureme.config import config
config = AppConfig()


# Validation on startup
if __name__ == "__main__":
    print("Configuration loaded successfully!")
    print(f"Environment: {config.ENVIRONMENT}")
    print(f"Processor interval: {config.PROCESSOR_INTERVAL_SECONDS}s (warm-up {config.PROCESSOR_WARMUP_SECONDS}s)")
    print(f"Send interval: {config.SEND_INTERVAL_SECONDS}s")
    print(f"Encryption: {'✓' if config.encryption_configured else '✗'}")
    print(f"Supabase: {'✓' if config.supabase_configured else '✗'}")
    print(f"Resend: {'✓' if config.email_configured else '✗'}")
    print(f"Admin auth: {'✓' if config.admin_auth_configured else '✗'}")
