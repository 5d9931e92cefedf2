"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys - Optional
    discogs_token: str | None = Field(
        None, description="Default Discogs API token (user settings take precedence)"
    )
    discogs_user_agent: str = Field(
        default="DiscogsCreditScanner/0.3 (+https://github.com/discogs-credit-scanner)",
        description="User-Agent header sent with every Discogs request",
    )

    # Storage Configuration
    store_path: Path = Field(
        default=Path("scanner.db"), description="Path to SQLite key/value store"
    )

    @property
    def resolved_store_path(self) -> Path:
        """Get the store path, handling empty env var case."""
        if not str(self.store_path) or str(self.store_path) == ".":
            return Path("scanner.db")
        return self.store_path

    # Application Configuration
    host: str = Field(default="0.0.0.0", description="Host to bind the server to")
    port: int = Field(default=8000, description="Port to run the server on")
    log_level: str = Field(default="INFO", description="Logging level")

    # Feature Flags
    main_releases_only: bool = Field(
        default=False,
        description="Only scan listing entries with the 'Main' role (masters always included)",
    )
    enable_telemetry: bool = Field(default=True, description="Enable PostHog telemetry")

    # PostHog Configuration
    posthog_api_key: str | None = Field(None, description="PostHog API key for telemetry")
    posthog_host: str = Field(default="https://us.i.posthog.com", description="PostHog host URL")

    # Sentry Configuration
    sentry_dsn: str | None = Field(None, description="Sentry DSN for error tracking")

    # Scan Pacing Configuration
    token_request_delay_ms: int = Field(
        default=1100, description="Delay between requests when a Discogs token is set"
    )
    anonymous_request_delay_ms: int = Field(
        default=3000, description="Delay between requests without a Discogs token"
    )
    max_additional_versions: int = Field(
        default=5,
        ge=0,
        description="Max alternate releases fetched per master when the key release lacks credits",
    )
    listing_page_size: int = Field(
        default=100, description="Page size for artist release listings"
    )

    # Discogs Rate Limiting Configuration
    discogs_rate_limit: int = Field(
        default=50, description="Max Discogs API requests per minute (stay under 60/min limit)"
    )
    discogs_max_attempts: int = Field(
        default=3, description="Max attempts for transient Discogs failures"
    )
    discogs_timeout: float = Field(default=10.0, description="HTTP timeout in seconds")

    # Application Metadata
    app_name: str = Field(default="Discogs-Credit-Scanner", description="Application name")
    app_version: str = Field(default="0.3.0", description="Application version")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def request_delay_seconds(self, token: str | None) -> float:
        """Inter-request delay for the given token (slower when unauthenticated)."""
        if token and token.strip():
            return self.token_request_delay_ms / 1000
        return self.anonymous_request_delay_ms / 1000


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
