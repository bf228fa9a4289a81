"""Configuration settings for Commit Sync."""

import os
from datetime import UTC, datetime
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_CONFIG_DIR = Path.home() / ".commit-sync"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yml"


def _config_file() -> Path:
    """Location of the optional YAML config file."""
    override = os.environ.get("COMMIT_SYNC_CONFIG_FILE")
    return Path(override).expanduser() if override else DEFAULT_CONFIG_FILE


class RetryStrategy(str, Enum):
    """How the delay between delivery attempts grows."""

    FIXED = "fixed"
    """Same delay before every retry."""

    EXPONENTIAL = "exponential"
    """Delay multiplied by `backoff_multiplier` after each failed attempt."""


class CacheBackend(str, Enum):
    """Storage used for the commit cache."""

    FILE = "file"
    """One newline-delimited text file per repository."""

    SQLITE = "sqlite"
    """A single SQLite database shared by all repositories."""


class CredentialStatus(str, Enum):
    """State of the configured API credential."""

    VALID = "valid"
    MISSING = "missing"
    EXPIRED = "expired"


class BatchingConfig(BaseModel):
    """Configuration for batched commit delivery.

    Controls chunk size and the retry policy applied to each chunk.
    """

    max_commits_per_batch: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum commits sent in a single delivery request",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        description="Delivery attempts per batch before the run aborts",
    )
    retry_delay_ms: int = Field(
        default=1000,
        ge=0,
        description="Delay before the first retry in milliseconds",
    )

    # Backoff shape
    retry_strategy: RetryStrategy = Field(
        default=RetryStrategy.FIXED,
        description="fixed or exponential delay growth",
    )
    backoff_multiplier: float = Field(
        default=2.0,
        ge=1.0,
        description="Growth factor for exponential backoff",
    )
    max_retry_delay_ms: int = Field(
        default=60000,
        ge=0,
        description="Upper bound on a single retry delay (60 seconds)",
    )
    retry_jitter: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Fraction of the delay randomized (0 = no jitter)",
    )


class CacheConfig(BaseModel):
    """Configuration for the local commit cache."""

    enabled: bool = Field(
        default=True,
        description="Skip commits that were already delivered",
    )
    backend: CacheBackend = Field(
        default=CacheBackend.FILE,
        description="Cache storage backend",
    )
    directory: Path = Field(
        default=DEFAULT_CONFIG_DIR / "cache" / "commits",
        description="Directory holding cache files (or the SQLite database)",
    )


class LoggingConfig(BaseModel):
    """Configuration for logging behavior.

    Controls file logging, rotation, and output format.
    """

    log_file: str | None = Field(
        default=None,
        description="Optional path for file logging (enables rotation)",
    )
    rotation: str = Field(
        default="10 MB",
        description="When to rotate log file (e.g., '10 MB', '1 day')",
    )
    retention: str = Field(
        default="7 days",
        description="How long to keep rotated logs",
    )
    serialize: bool = Field(
        default=False,
        description="If True, output JSON format to file",
    )


class RepositoryConfig(BaseModel):
    """A local checkout enrolled for `sync-all`."""

    path: Path = Field(description="Local root path of the checkout")
    label: str | None = Field(
        default=None,
        description="Repository label (defaults to owner/name from the remote)",
    )
    branch: str | None = Field(
        default=None,
        description="Branch to read (defaults to the current branch)",
    )
    max_commits: int | None = Field(
        default=None,
        ge=1,
        description="Commits to read per run (defaults to default_max_commits)",
    )
    enabled: bool = Field(default=True, description="Include in sync-all")


class Settings(BaseSettings):
    """Application settings loaded from init args, environment and config file."""

    model_config = SettingsConfigDict(
        env_prefix="COMMIT_SYNC_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # Remote service
    # --------------------------------------------------------------------------
    api_base_url: str = Field(
        default="https://app.bragdoc.ai",
        description="Base URL of the achievement service",
    )
    api_token: str = Field(
        default="",
        description="Bearer token issued by the service login flow",
    )
    api_token_expires_at: datetime | None = Field(
        default=None,
        description="Token expiry (ISO datetime or epoch milliseconds)",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single delivery request",
    )

    # --------------------------------------------------------------------------
    # Application
    # --------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    default_max_commits: int = Field(
        default=300,
        ge=1,
        description="Commits read per run when not overridden",
    )

    # --------------------------------------------------------------------------
    # Nested configuration
    # --------------------------------------------------------------------------
    batching: BatchingConfig = Field(
        default_factory=BatchingConfig,
        description="Batch delivery and retry configuration",
    )
    cache: CacheConfig = Field(
        default_factory=CacheConfig,
        description="Commit cache configuration",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration (file output, rotation)",
    )
    repositories: list[RepositoryConfig] = Field(
        default_factory=list,
        description="Checkouts enrolled for sync-all",
    )

    @field_validator("api_token_expires_at", mode="before")
    @classmethod
    def _parse_epoch_millis(cls, value: object) -> object:
        """Accept epoch milliseconds as written by the login flow."""
        if isinstance(value, int | float) and not isinstance(value, bool):
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        if isinstance(value, str) and value.isdigit():
            return datetime.fromtimestamp(int(value) / 1000, tz=UTC)
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Layer the YAML config file beneath environment variables."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=_config_file()),
            file_secret_settings,
        )

    def credential_status(self, now: datetime | None = None) -> CredentialStatus:
        """Check whether the API token can be used.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            CredentialStatus for the configured token
        """
        if not self.api_token:
            return CredentialStatus.MISSING

        if self.api_token_expires_at is not None:
            expires_at = self.api_token_expires_at
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=UTC)
            if expires_at < (now or datetime.now(UTC)):
                return CredentialStatus.EXPIRED

        return CredentialStatus.VALID

    @property
    def enabled_repositories(self) -> list[RepositoryConfig]:
        """Enrolled repositories that are not disabled."""
        return [repo for repo in self.repositories if repo.enabled]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
