from typing import Final

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_EVENT_STREAM_KEEPALIVE_SECONDS,
    DEFAULT_EVENT_STREAM_QUEUE_SIZE,
    DEFAULT_METRICS_PORT,
    DEFAULT_PORT,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env files."""

    # Server configuration
    debug: bool = Field(default=True, description="Enable debug mode")
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535, description="Server port")

    metrics_port: int = Field(
        default=DEFAULT_METRICS_PORT,
        ge=1,
        le=65535,
        description="Prometheus metrics port when telemetry is enabled",
    )

    # Database configuration
    database_url: str = Field(
        default="sqlite:///./signboard.db", description="Database connection URL"
    )
    db_name: str = Field(default="signboard", description="Database name for SQLite")

    # Application configuration
    app_name: str = Field(default="Signboard", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")

    # Live update stream configuration
    event_stream_queue_size: int = Field(
        default=DEFAULT_EVENT_STREAM_QUEUE_SIZE,
        ge=1,
        description="Pending notifications buffered per live subscriber",
    )
    event_stream_keepalive_seconds: float = Field(
        default=DEFAULT_EVENT_STREAM_KEEPALIVE_SECONDS,
        gt=0,
        description="Seconds between keepalive comments on idle event streams",
    )

    # Logging configuration
    log_to_file: bool = Field(
        default=False, description="Force logging to file even in debug mode"
    )
    log_level: str | None = Field(
        default=None, description="Log level name; derived from debug when unset"
    )
    log_dir: str = Field(default="logs", description="Directory for log files")

    # Pydantic Settings configuration
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug

    @computed_field  # type: ignore[prop-decorator]
    @property
    def effective_database_url(self) -> str:
        """Get the effective database URL, handling SQLite with db_name."""
        if self.database_url == "sqlite:///./signboard.db" and (
            self.db_name != "signboard"
        ):
            return f"sqlite:///./{self.db_name}.db"
        return self.database_url


# Global settings instance
settings: Final = Settings()
