"""
Paper Tracker Configuration Management Module

Provides type-safe configuration management using pydantic-settings.
Supports loading configuration from environment variables and .env files.

Usage:
    from config.settings import settings
    print(settings.data_dir)
    print(settings.metadata.cache_ttl)
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root directory
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Resolved metadata is kept for one day unless overridden.
METADATA_CACHE_TTL_S = 24 * 60 * 60


class MetadataSettings(BaseSettings):
    """Metadata resolution and cache configuration"""

    model_config = SettingsConfigDict(
        env_prefix="PAPER_TRACKER_METADATA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    cache_backend: Literal["sqlite", "memory"] = Field(default="sqlite", description="Metadata cache store")
    cache_ttl: int = Field(
        default=METADATA_CACHE_TTL_S,
        description="Metadata cache TTL (seconds)",
        validation_alias=AliasChoices(
            "PAPER_TRACKER_METADATA_CACHE_TTL",
            "PAPER_TRACKER_CACHE_TTL",
        ),
    )
    cache_key_prefix: str = Field(default="paper-meta:", description="Namespace prepended to cache keys")
    cache_db_name: str = Field(default="cache.db", description="SQLite cache file name (inside data_dir)")
    memory_cache_size: int = Field(default=1024, description="Max entries for the in-memory cache backend")
    user_agent: str = Field(default="PaperTracker/1.0", description="User-Agent sent on outbound fetches")
    generic_timeout: float = Field(default=5.0, description="Generic page fetch timeout (seconds)")
    max_page_bytes: int = Field(default=1_048_576, description="Bytes read from a generic page before the body is cut off")
    cache_purge_interval: float = Field(
        default=3600.0, description="Seconds between sweeps of expired SQLite cache rows (0 disables)"
    )

    @field_validator("cache_ttl")
    @classmethod
    def validate_cache_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("cache_ttl must be positive")
        return v


class ArxivSettings(BaseSettings):
    """arXiv API configuration"""

    model_config = SettingsConfigDict(
        env_prefix="PAPER_TRACKER_ARXIV_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_url: str = Field(default="https://export.arxiv.org/api/query", description="arXiv metadata query endpoint")
    api_timeout: float = Field(default=10.0, description="arXiv API request timeout (seconds)")
    max_response_bytes: int = Field(default=2_097_152, description="Bytes read from an arXiv API reply before it is cut off")


class WebSettings(BaseSettings):
    """Web application configuration"""

    model_config = SettingsConfigDict(
        env_prefix="PAPER_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    access_log: bool = Field(default=False, description="Enable access logging")
    max_content_length: int = Field(default=65536, description="Max request body size (bytes)")

    # Prometheus endpoint
    enable_metrics: bool = Field(default=False, description="Expose /metrics")
    metrics_key: str = Field(default="", description="Shared key required by /metrics (empty disables check)")


class DatabaseSettings(BaseSettings):
    """Database configuration"""

    model_config = SettingsConfigDict(
        env_prefix="PAPER_TRACKER_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    timeout: int = Field(default=30, description="SQLite connection timeout (seconds)")
    max_retries: int = Field(default=5, description="Database operation max retries")
    retry_base_sleep: float = Field(default=0.2, description="Retry base sleep time (seconds)")


class Settings(BaseSettings):
    """Main configuration class"""

    model_config = SettingsConfigDict(
        env_prefix="PAPER_TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = "PaperTracker"

    # Data directories
    data_dir: Path = PROJECT_ROOT / "data"
    log_dir: Path | None = None  # Log directory (default data_dir/logs)

    # Service configuration
    host: str = "127.0.0.1"
    serve_port: int = 8787

    # Log configuration
    log_level: str = "WARNING"
    log_format: Literal["text", "json"] = "text"
    log_to_file: bool = False  # Also write logs to log_dir/paper_tracker.log
    log_rotation: str = "10 MB"
    log_retention: int = 5  # Rotated files kept

    # Nested sections are built per Settings() so reload_settings() re-reads the environment.
    metadata: MetadataSettings = Field(default_factory=MetadataSettings)
    arxiv: ArxivSettings = Field(default_factory=ArxivSettings)
    web: WebSettings = Field(default_factory=WebSettings)
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)

    @model_validator(mode="after")
    def set_defaults(self) -> Settings:
        """Set dependent default values"""
        if self.log_dir is None:
            self.log_dir = self.data_dir / "logs"
        return self

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def resolve_path(cls, v):
        """Resolve path (relative paths are taken from the project root)"""
        if v is None:
            return v
        path = Path(v) if isinstance(v, str) else v
        if isinstance(path, Path) and not path.is_absolute():
            path = (PROJECT_ROOT / path).resolve()
        return path

    @property
    def metadata_cache_path(self) -> Path:
        return self.data_dir / self.metadata.cache_db_name


@lru_cache
def get_settings() -> Settings:
    """Get settings singleton (with cache)"""
    return Settings()


# Global settings instance - explicit type annotation ensures IDE correctly infers type
settings: Settings = get_settings()


def reload_settings() -> Settings:
    """Reload settings (clear cache)"""
    get_settings.cache_clear()
    # Note: this does not update module-level settings variable, caller should use return value
    # To update global settings, use config package's reload_settings
    return get_settings()
