"""Configuration management using Pydantic Settings.

The configuration is organized into logical groups:
- DatabaseConfig: SQL key-value store connection settings
- LoggingConfig: Logging levels, files, and debugging options
- CredentialsConfig: Music platform credentials
- APIConfig: Spotify request, retry and search settings
- CacheConfig: Store backend, TTLs, key prefixes and stats sampling
- MatchingConfig: Scoring algorithm metadata
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    """Database connection and pooling configuration."""

    url: str = "sqlite+aiosqlite:///data/db/tunematch.db"
    echo: bool = False
    pool_size: int = 1
    max_overflow: int = 2
    pool_timeout: int = 60
    pool_recycle: int = 3600


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("data/logs/tunematch.log")
    real_time_debug: bool = True


class CredentialsConfig(BaseModel):
    """API credentials and authentication settings."""

    spotify_client_id: str = ""
    spotify_client_secret: str = ""


class APIConfig(BaseModel):
    """Spotify API configuration and rate limiting."""

    spotify_retry_count: int = 3
    spotify_retry_base_delay: float = 0.5
    spotify_retry_max_delay: float = 30.0
    spotify_request_timeout: float = 10.0
    spotify_market: str = "US"
    # Spotify caps audio-feature lookups at 100 ids and artist lookups at 50
    spotify_batch_size: int = 50
    search_default_limit: int = 20
    search_max_limit: int = 50


class CacheConfig(BaseModel):
    """Key-value store backend and cache policy configuration."""

    backend: Literal["database", "redis", "memory"] = "database"
    redis_url: str = "redis://localhost:6379/0"

    result_ttl_days: float = 7.0
    source_ttl_days: float = 30.0
    # Expired song records stay in the store this long so sweeps can see them
    source_retention_grace_hours: float = 24.0

    result_prefix: str = "match:"
    source_prefix: str = "song:"

    stats_size_sample: int = 10
    stats_ttl_sample: int = 100


class MatchingConfig(BaseModel):
    """Scoring algorithm metadata."""

    algorithm_version: str = "1.0"


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Environment variables can be set using flat naming or nested naming:
    - Flat: DATABASE_URL, REDIS_URL, CONSOLE_LOG_LEVEL, SPOTIFY_CLIENT_ID
    - Nested: DATABASE__URL, CACHE__REDIS_URL, LOGGING__CONSOLE_LEVEL

    The .env file is automatically loaded for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    credentials: CredentialsConfig = CredentialsConfig()
    api: APIConfig = APIConfig()
    cache: CacheConfig = CacheConfig()
    matching: MatchingConfig = MatchingConfig()

    data_dir: Path = Path("data")

    @model_validator(mode="before")
    @classmethod
    def transform_flat_env_vars(cls, data: Any) -> Any:
        """Transform flat environment variables to nested structure.

        Handles flat env vars (DATABASE_URL) and maps them to the
        nested structure expected by the models (database.url).
        """
        if not isinstance(data, dict):
            return data

        mappings = {
            "database": {
                "database_url": "url",
                "database_echo": "echo",
            },
            "logging": {
                "console_log_level": "console_level",
                "file_log_level": "file_level",
                "log_file": "log_file",
                "log_real_time_debug": "real_time_debug",
            },
            "credentials": {
                "spotify_client_id": "spotify_client_id",
                "spotify_client_secret": "spotify_client_secret",
            },
            "cache": {
                "cache_backend": "backend",
                "redis_url": "redis_url",
            },
            "matching": {
                "algorithm_version": "algorithm_version",
            },
        }

        transformed: dict[str, dict[str, Any]] = {}
        for section, section_mapping in mappings.items():
            for env_key, field_key in section_mapping.items():
                if env_key in data:
                    transformed.setdefault(section, {})[field_key] = data.pop(env_key)

        # Explicit nested values win over flat aliases
        for section, values in transformed.items():
            existing = data.get(section)
            if isinstance(existing, dict):
                data[section] = {**values, **existing}
            elif existing is None:
                data[section] = values

        return data


# Singleton instance for application use
settings = Settings()
