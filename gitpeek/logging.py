"""
GitPeek logging utilities.

Provides configurable logging for upstream HTTP traffic, the content
aggregator and the store. Access tokens are never written to the logs in
full: request headers, bodies and free text pass through the masking helpers
below before they reach a handler.
"""

import logging
import re
from typing import Any

_root_logger = logging.getLogger("gitpeek")
_http_logger = logging.getLogger("gitpeek.http")

# Patterns for credentials that must not reach log output
_SENSITIVE_PATTERNS = [
    # Authorization header values
    (re.compile(r"(Bearer)\s+[A-Za-z0-9_\-\.]+", re.IGNORECASE), r"\1 [REDACTED]"),
    # GitHub OAuth, personal, app and refresh tokens
    (re.compile(r"\b(gh[opusr]_)[A-Za-z0-9]{16,}\b"), r"\1[REDACTED]"),
    (re.compile(r"\bgithub_pat_[A-Za-z0-9_]{20,}\b"), "github_pat_[REDACTED]"),
    # token=... query parameters (private download URLs)
    (re.compile(r"([?&]token=)[^&\s\"']+"), r"\1[REDACTED]"),
    # key/value pairs
    (re.compile(r"(access_token|secret|password|authorization)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]", re.IGNORECASE), r"\1: [REDACTED]"),
]

_TOKEN_PREVIEW_LENGTH = 4

_DEFAULT_SENSITIVE_KEYS = frozenset(
    {"authorization", "access_token", "token", "secret", "password", "cookie"}
)


def configure_logging(
    level: int = logging.INFO,
    http_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure GitPeek logging.

    Args:
        level: Default log level for all GitPeek loggers (default: INFO)
        http_level: Log level for upstream request/response logging (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from gitpeek.logging import configure_logging

        # Trace every upstream call
        configure_logging(level=logging.INFO, http_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)

    _root_logger.setLevel(level)
    _root_logger.addHandler(handler)

    _http_logger.setLevel(http_level if http_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a GitPeek logger.

    Args:
        name: Logger name suffix (e.g., "http", "aggregator"). If None, returns the root GitPeek logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _root_logger
    return logging.getLogger(f"gitpeek.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask credentials in a string.

    Args:
        text: Text that may contain access tokens

    Returns:
        Text with tokens replaced by redacted placeholders
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def mask_token(token: str | None) -> str:
    """
    Shorten a token for safe logging.

    Shows only the first few characters, enough to tell two tokens apart
    without making either usable.
    """
    if not token:
        return "[NONE]"
    if len(token) <= _TOKEN_PREVIEW_LENGTH * 3:
        return "[REDACTED]"
    return f"{token[:_TOKEN_PREVIEW_LENGTH]}..."


def safe_log_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """
    Create a copy of a dictionary with sensitive values masked.

    Args:
        data: Dictionary that may contain sensitive values
        sensitive_keys: Keys to mask (default: authorization, access_token, token, secret, password, cookie)

    Returns:
        Dictionary with sensitive values replaced with "[REDACTED]"
    """
    keys = _DEFAULT_SENSITIVE_KEYS if sensitive_keys is None else sensitive_keys

    result: dict[str, Any] = {}
    for key, value in data.items():
        key_lower = key.lower()
        if key_lower in keys or any(sk in key_lower for sk in keys):
            result[key] = "[REDACTED]"
        elif isinstance(value, dict):
            result[key] = safe_log_dict(value, sensitive_keys)
        elif isinstance(value, list):
            result[key] = [
                safe_log_dict(item, sensitive_keys) if isinstance(item, dict) else item
                for item in value
            ]
        elif isinstance(value, str):
            result[key] = mask_sensitive_data(value)
        else:
            result[key] = value

    return result


def log_http_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
) -> None:
    """
    Log an upstream HTTP request at DEBUG level with credentials masked.

    Args:
        method: HTTP method
        url: Request URL
        headers: Request headers (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {mask_sensitive_data(url)}"]

    if headers:
        log_parts.append(f"headers={safe_log_dict(headers)}")

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    elapsed_ms: float | None = None,
) -> None:
    """
    Log an upstream HTTP response at DEBUG level.

    Response bodies are not logged: they carry repository content.

    Args:
        status_code: HTTP status code
        url: Request URL
        elapsed_ms: Request duration in milliseconds (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {mask_sensitive_data(url)}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    _http_logger.debug(" | ".join(log_parts))


__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "mask_token",
    "safe_log_dict",
    "log_http_request",
    "log_http_response",
]
