"""
GitPeek configuration.

Settings are plain values passed explicitly to the components that need
them; nothing reads the environment after startup.
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlsplit

from gitpeek.exceptions import ConfigurationError

DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_WEB_BASE_URL = "https://github.com"
DEFAULT_RAW_BASE_URL = "https://raw.githubusercontent.com"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the store, the upstream client and the HTTP surface."""

    database_url: str
    api_base_url: str = DEFAULT_API_BASE_URL
    web_base_url: str = DEFAULT_WEB_BASE_URL
    raw_base_url: str = DEFAULT_RAW_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    log_level: int = logging.INFO

    @property
    def web_host(self) -> str:
        return urlsplit(self.web_base_url).netloc

    @property
    def raw_host(self) -> str:
        return urlsplit(self.raw_base_url).netloc

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Create settings from environment variables.

        Environment variables:
            GITPEEK_DATABASE_URL: SQLAlchemy database URL (required)
            GITPEEK_API_BASE_URL: Upstream API base URL (optional, default: https://api.github.com)
            GITPEEK_WEB_BASE_URL: Upstream web host URL (optional, default: https://github.com)
            GITPEEK_RAW_BASE_URL: Raw content host URL (optional, default: https://raw.githubusercontent.com)
            GITPEEK_TIMEOUT: Per-request upstream timeout in seconds (optional, default: 10)
            GITPEEK_LOG_LEVEL: Logging level name (optional, default: INFO)

        Raises:
            ConfigurationError: If a required variable is missing or a value is invalid
        """
        database_url = os.environ.get("GITPEEK_DATABASE_URL")
        if not database_url:
            raise ConfigurationError("GITPEEK_DATABASE_URL environment variable not set")

        timeout_str = os.environ.get("GITPEEK_TIMEOUT", str(DEFAULT_TIMEOUT))
        try:
            timeout = float(timeout_str)
        except ValueError:
            raise ConfigurationError(
                f"Invalid GITPEEK_TIMEOUT: {timeout_str}. Must be a number of seconds"
            ) from None
        if timeout <= 0:
            raise ConfigurationError(f"Invalid GITPEEK_TIMEOUT: {timeout_str}. Must be positive")

        level_name = os.environ.get("GITPEEK_LOG_LEVEL", "INFO").upper()
        log_level = logging.getLevelName(level_name)
        if not isinstance(log_level, int):
            raise ConfigurationError(f"Invalid GITPEEK_LOG_LEVEL: {level_name}")

        return cls(
            database_url=database_url,
            api_base_url=os.environ.get("GITPEEK_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            web_base_url=os.environ.get("GITPEEK_WEB_BASE_URL", DEFAULT_WEB_BASE_URL).rstrip("/"),
            raw_base_url=os.environ.get("GITPEEK_RAW_BASE_URL", DEFAULT_RAW_BASE_URL).rstrip("/"),
            timeout=timeout,
            log_level=log_level,
        )
