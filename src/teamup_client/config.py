"""Client configuration.

Two layers of configuration exist:

- `ClientConfig`: the immutable values one `TeamupClient` holds for its whole
  lifetime (API token and the defaults merged into every call).
- `Settings`: environment-driven settings loaded with pydantic-settings, used
  by `TeamupClient.from_settings()` and the CLI.

## Environment Variables

- TEAMUP_API_TOKEN: Teamup API key (required by `from_settings` and the CLI)
- TEAMUP_DEFAULT_PASSWORD: Password sent for password-protected calendars
- TEAMUP_DEFAULT_LANGUAGE: Language code (default: en_GB)
- TEAMUP_DEFAULT_TIMEZONE: Timezone name (default: UTC)
- TEAMUP_SKIP_TOKEN_CHECK: Skip the check-access call on context entry
- TEAMUP_API_BASE_URL: API host (default: https://api.teamup.com)
- TEAMUP_ICS_BASE_URL: Host serving iCalendar exports (default: https://teamup.com)
- TEAMUP_TIMEOUT: Request timeout in seconds (default: 30)
- TEAMUP_LOG_LEVEL: Log level used by the CLI (default: WARNING)

## Example .env file

```
TEAMUP_API_TOKEN=your-teamup-api-key
TEAMUP_DEFAULT_TIMEZONE=Europe/Berlin
```
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LANGUAGE = "en_GB"
DEFAULT_TIMEZONE = "UTC"
DEFAULT_API_BASE_URL = "https://api.teamup.com"
DEFAULT_ICS_BASE_URL = "https://teamup.com"
DEFAULT_TIMEOUT = 30.0


class ClientConfig(BaseModel):
    """Token and per-call defaults held by a client instance."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(..., min_length=1, description="Teamup API key")
    default_password: str | None = None
    default_language: str = DEFAULT_LANGUAGE
    default_timezone: str = DEFAULT_TIMEZONE

    @field_validator("default_password", mode="before")
    @classmethod
    def drop_non_string_password(cls, v: Any) -> str | None:
        """Only string passwords are kept."""
        return v if isinstance(v, str) else None

    @field_validator("default_language", mode="before")
    @classmethod
    def fallback_language(cls, v: Any) -> str:
        """Fall back to en_GB when no usable language is given."""
        return v if isinstance(v, str) and v else DEFAULT_LANGUAGE

    @field_validator("default_timezone", mode="before")
    @classmethod
    def fallback_timezone(cls, v: Any) -> str:
        """Fall back to UTC when no usable timezone is given."""
        return v if isinstance(v, str) and v else DEFAULT_TIMEZONE


class Settings(BaseSettings):
    """Settings loaded from TEAMUP_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TEAMUP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Authentication
    api_token: str | None = None
    default_password: str | None = None

    # Per-call defaults
    default_language: str = DEFAULT_LANGUAGE
    default_timezone: str = DEFAULT_TIMEZONE

    skip_token_check: bool = False

    # Transport
    api_base_url: str = DEFAULT_API_BASE_URL
    ics_base_url: str = DEFAULT_ICS_BASE_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)

    log_level: str = "WARNING"

    @field_validator("api_base_url", "ics_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths are appended with a leading slash."""
        return v.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Normalize to an upper-case name known to `logging`."""
        level = str(v).strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level '{v}'")
        return level

    @property
    def token_configured(self) -> bool:
        """Check if an API token is available."""
        return bool(self.api_token)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings.

    Settings are loaded once and cached. To reload, clear the cache:
    ```python
    get_settings.cache_clear()
    ```
    """
    return Settings()


def get_settings_uncached() -> Settings:
    """Get fresh settings without caching.

    Useful for testing when environment variables change.
    """
    return Settings()
