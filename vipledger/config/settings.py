"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vipledger.config.constants import (
    DEFAULT_MAX_DAILY_TASKS,
    DEFAULT_PROFIT_UNLOCK_HOUR,
    DEFAULT_ROULETTE_MIN_INVESTMENT,
)


ACTIVATION_POLICIES = ("time_window", "task_gated")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/vipledger.log"

    # Activation cycle
    timezone: str = Field(
        default="America/La_Paz",
        description="IANA timezone used for the daily unlock instant"
    )
    profit_unlock_hour: int = Field(
        default=DEFAULT_PROFIT_UNLOCK_HOUR, ge=0, le=23,
        description="Local hour at which a new activation cycle starts"
    )
    activation_policy: str = Field(
        default="time_window",
        description="Gate policy: time_window or task_gated"
    )
    max_daily_tasks: int = Field(
        default=DEFAULT_MAX_DAILY_TASKS, ge=1, le=10,
        description="Number of task slots available to admins"
    )

    # Roulette
    roulette_min_investment: int = Field(
        default=DEFAULT_ROULETTE_MIN_INVESTMENT, gt=0,
        description="Minimum purchase investment that grants a spin"
    )

    # Transient storage error handling
    db_retry_attempts: int = Field(
        default=3, ge=1, le=10,
        description="Attempts for a crediting transaction on conflicts"
    )
    db_retry_backoff: float = Field(
        default=0.1, ge=0,
        description="Base backoff in seconds, doubled on every attempt"
    )

    # Redis (Dramatiq broker)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(
            ("postgresql+asyncpg://", "sqlite+aiosqlite://")
        ):
            raise ValueError(
                "DATABASE_URL must start with postgresql+asyncpg:// "
                "or sqlite+aiosqlite://"
            )
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate that the timezone is known to zoneinfo."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @field_validator("activation_policy")
    @classmethod
    def validate_activation_policy(cls, v: str) -> str:
        """Validate gate policy name."""
        value = v.strip().lower()
        if value not in ACTIVATION_POLICIES:
            raise ValueError(
                f"ACTIVATION_POLICY must be one of {', '.join(ACTIVATION_POLICIES)}"
            )
        return value

    @model_validator(mode="after")
    def validate_production(self) -> "Settings":
        """Validate production-specific requirements."""
        if self.environment == "production":
            if self.debug:
                raise ValueError(
                    "DEBUG must be False in production environment. "
                    "Set DEBUG=false in your .env file."
                )
            if self.database_url.startswith("sqlite"):
                raise ValueError(
                    "SQLite cannot be used in production: per-user row "
                    "locks require PostgreSQL."
                )
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        """Local timezone for activation cycles."""
        return ZoneInfo(self.timezone)


# Global settings instance
settings = Settings()
