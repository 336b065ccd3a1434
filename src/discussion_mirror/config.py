"""Configuration management with pydantic-settings for discussion-mirror.

- pydantic-settings for type-safe configuration
- Automatic .env file loading with proper precedence
- SecretStr for the GitHub access token
- Frozen config: constructed once per run and passed explicitly to every
  component, never read ad hoc from inside them
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError
from .sanitize import sanitize_text_field

logger = logging.getLogger("discussion_mirror.config")

__all__ = [
    "DEFAULT_FETCH_COUNT",
    "MAX_FETCH_COUNT",
    "MIN_FETCH_COUNT",
    "SCHEDULE_INTERVALS",
    "MirrorConfig",
    "clamp_fetch_count",
    "get_config",
    "reset_config",
]

# GitHub GraphQL connections accept at most 100 nodes per page
MAX_FETCH_COUNT = 100
MIN_FETCH_COUNT = 1
DEFAULT_FETCH_COUNT = 10

# Cadence in seconds for each fetch schedule option
SCHEDULE_INTERVALS: dict[str, int] = {
    "hourly": 60 * 60,
    "daily": 24 * 60 * 60,
    "weekly": 7 * 24 * 60 * 60,
    "monthly": 30 * 24 * 60 * 60,
}

FetchSchedule = Literal["hourly", "daily", "weekly", "monthly"]


def clamp_fetch_count(value: int | str | None) -> int:
    """Clamp a stored fetch count to the range accepted by the API.

    Non-numeric or missing values fall back to DEFAULT_FETCH_COUNT.

    Examples:
        >>> clamp_fetch_count(250)
        100
        >>> clamp_fetch_count(0)
        1
    """
    try:
        count = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        count = DEFAULT_FETCH_COUNT
    return max(MIN_FETCH_COUNT, min(count, MAX_FETCH_COUNT))


class MirrorConfig(BaseSettings):
    """Configuration for discussion-mirror.

    Loads from (in order of precedence):
    1. Environment variables (highest priority)
    2. .env file in the working directory
    3. Default values (lowest priority)

    Attributes:
        github_access_token: Bearer token for the GitHub GraphQL API
        github_organization: Organization that owns every mirrored repository
        github_repositories: Comma-separated repository names
        github_fetch_schedule: Cadence of the scheduled run
        github_fetch_count: Page size for summary queries, clamped to [1, 100] on use
        github_enable_redirect: Redirect record views to the canonical GitHub URL
        github_graphql_url: GitHub GraphQL endpoint
        summary_graphql_url: Host CMS GraphQL endpoint for the settings preview query
        database_path: SQLite content repository file
        lock_path: Lock file guarding against overlapping runs
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format (json for production, text for development)
        metrics_push_enabled: Push run metrics to the Prometheus pushgateway
        pushgateway_url: Pushgateway address
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        validate_default=True,
        frozen=True,
        extra="ignore",
    )

    github_access_token: SecretStr = Field(
        default=SecretStr(""),
        description="GitHub access token used as a static bearer credential",
    )

    github_organization: str = Field(
        default="",
        description="GitHub organization owning the mirrored repositories",
    )

    github_repositories: str = Field(
        default="",
        description="Comma-separated repository names (e.g. 'docs, website')",
    )

    github_fetch_schedule: FetchSchedule = Field(
        default="daily",
        description="Fetch cadence: hourly, daily, weekly or monthly",
    )

    # Deliberately unbounded: out-of-range values are clamped on use
    github_fetch_count: int = Field(
        default=DEFAULT_FETCH_COUNT,
        description="Number of items to fetch (clamped to 1-100 before use)",
    )

    github_enable_redirect: bool = Field(
        default=False,
        description="Redirect views of a mirrored discussion to GitHub",
    )

    github_graphql_url: str = Field(
        default="https://api.github.com/graphql",
        description="GitHub GraphQL API endpoint",
    )

    summary_graphql_url: str = Field(
        default="",
        description="Host CMS GraphQL endpoint used by 'query --execute'",
    )

    database_path: Path = Field(
        default_factory=lambda: Path.home() / ".discussion-mirror" / "discussions.db",
        description="SQLite content repository",
    )

    lock_path: Path = Field(
        default_factory=lambda: Path.home() / ".discussion-mirror" / "run.lock",
        description="Lock file preventing overlapping pipeline runs",
    )

    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    log_format: str = Field(
        default="json",
        pattern="^(json|text)$",
        description="Log format: json (production), text (development)",
    )

    metrics_push_enabled: bool = Field(
        default=False,
        description="Push run metrics to the Prometheus pushgateway",
    )

    pushgateway_url: str = Field(
        default="localhost:29091",
        description="Prometheus pushgateway address",
    )

    @field_validator("github_organization", "github_repositories", mode="before")
    @classmethod
    def sanitize_text_settings(cls, v):
        """Strip markup and stray whitespace from free-text settings."""
        if isinstance(v, str):
            return sanitize_text_field(v)
        return v

    @field_validator("github_fetch_schedule", mode="before")
    @classmethod
    def normalize_schedule(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("github_fetch_count", mode="before")
    @classmethod
    def coerce_fetch_count(cls, v):
        """Non-numeric values fall back to the default instead of failing."""
        try:
            return int(v)
        except (TypeError, ValueError):
            logger.warning(
                "invalid_fetch_count", extra={"value": str(v)[:50], "default": DEFAULT_FETCH_COUNT}
            )
            return DEFAULT_FETCH_COUNT

    @field_validator("database_path", "lock_path", mode="before")
    @classmethod
    def expand_user_paths(cls, v):
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    def get_repositories(self) -> list[str]:
        """Split the repository setting on commas and trim each entry.

        Order is preserved and blank entries are kept; the pipeline skips them.
        """
        if not self.github_repositories:
            return []
        return [name.strip() for name in self.github_repositories.split(",")]

    def get_fetch_count(self) -> int:
        """Fetch count clamped to the [1, 100] range."""
        return clamp_fetch_count(self.github_fetch_count)

    def get_schedule_interval(self) -> int:
        """Seconds between scheduled runs for the configured schedule."""
        return SCHEDULE_INTERVALS[self.github_fetch_schedule]

    def get_token(self) -> str:
        return self.github_access_token.get_secret_value()

    def require_remote_settings(self) -> None:
        """Ensure the settings needed to call GitHub are present.

        Raises:
            ConfigError: If the access token or organization is missing
        """
        missing = []
        if not self.get_token():
            missing.append("GITHUB_ACCESS_TOKEN")
        if not self.github_organization:
            missing.append("GITHUB_ORGANIZATION")
        if missing:
            raise ConfigError(f"Missing required settings: {', '.join(missing)}")


@lru_cache(maxsize=1)
def get_config() -> MirrorConfig:
    """Get global configuration singleton.

    First call loads from environment + .env file, subsequent calls return
    the cached instance. Entry points (CLI, service) call this once and pass
    the result down.

    Raises:
        ValidationError: If configuration values are invalid.
    """
    return MirrorConfig()


def reset_config() -> None:
    """Reset configuration singleton for testing.

    Warning:
        Only use in test code. Production code should not reset config.
    """
    get_config.cache_clear()
