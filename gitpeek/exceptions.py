"""GitPeek exception classes."""


class GitPeekError(Exception):
    """Base exception for all GitPeek errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ConfigurationError(GitPeekError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class DecodeError(GitPeekError):
    """Raised when an upstream payload cannot be decoded or has an unexpected shape."""

    def __init__(self, message: str) -> None:
        super().__init__("DECODE_ERROR", message)


class UpstreamError(GitPeekError):
    """Raised when the upstream API answers with a non-success status."""

    def __init__(self, code: str, message: str, status_code: int | None = None) -> None:
        super().__init__(code, message)
        self.status_code = status_code


class AuthenticationError(UpstreamError):
    """Raised when upstream rejects the access token (401)."""

    pass


class AuthorizationError(UpstreamError):
    """Raised when upstream denies access to a resource (403)."""

    pass


class NotFoundError(UpstreamError):
    """Raised when an upstream resource is not found (404)."""

    pass


class RateLimitedError(UpstreamError):
    """Raised when upstream rate limits the token (429)."""

    def __init__(
        self,
        code: str,
        message: str,
        retry_after: int,
        status_code: int | None = 429,
    ) -> None:
        super().__init__(code, message, status_code)
        self.retry_after = retry_after


class ServerError(UpstreamError):
    """Raised on upstream server errors (5xx) and connection failures."""

    pass
