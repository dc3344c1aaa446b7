"""GitPeek - read-only share links for private repositories."""

from gitpeek.aggregator import ContentAggregator
from gitpeek.client import GitHubClient
from gitpeek.config import Settings
from gitpeek.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    DecodeError,
    GitPeekError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    UpstreamError,
)
from gitpeek.logging import configure_logging, get_logger
from gitpeek.resolver import resolve
from gitpeek.store import Store
from gitpeek.transport import HTTPTransport

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Core
    "ContentAggregator",
    "GitHubClient",
    "Store",
    "Settings",
    "resolve",
    # Exceptions
    "GitPeekError",
    "ConfigurationError",
    "DecodeError",
    "UpstreamError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "RateLimitedError",
    "ServerError",
    # Transport
    "HTTPTransport",
    # Logging
    "configure_logging",
    "get_logger",
]
