"""
HTTP transport for the upstream repository API.

One authenticated GET primitive with uniform error handling. Every call
carries the caller's access token explicitly; the transport holds no
credentials of its own.
"""

import time
from typing import Any

import httpx

from gitpeek.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DecodeError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    UpstreamError,
)
from gitpeek.logging import log_http_request, log_http_response

API_VERSION = "2022-11-28"
USER_AGENT = "GitPeek/1.0"
JSON_MEDIA_TYPE = "application/vnd.github+json"


class HTTPTransport:
    """
    Async HTTP transport for upstream API calls.

    Handles:
    - Bearer authentication, API version and content negotiation headers
    - An explicit per-request timeout
    - Error response parsing into typed exceptions

    No retries are attempted: a failure is final for that call.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize HTTP transport.

        Args:
            base_url: Base URL for API requests (e.g., "https://api.github.com")
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass an httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={
                "Accept": JSON_MEDIA_TYPE,
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": USER_AGENT,
            },
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "HTTPTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(
        self,
        url: str,
        access_token: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Make an authenticated GET request and return the decoded JSON body.

        Args:
            url: API path (e.g., "/repos/acme/widgets") or absolute URL
            access_token: Upstream access token of the repository owner
            params: Query parameters

        Returns:
            Parsed JSON response

        Raises:
            UpstreamError: On a non-success status
            DecodeError: If a success response is not JSON
        """
        response = await self._send(url, access_token, params)
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Response from {response.request.url.path} is not valid JSON") from e

    async def request_text(self, url: str, access_token: str) -> str:
        """
        Make an authenticated GET request and return the body as text.

        Used for direct raw-content URLs.
        """
        response = await self._send(url, access_token, None)
        return response.text

    async def _send(
        self,
        url: str,
        access_token: str,
        params: dict[str, Any] | None,
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {access_token}"}
        log_http_request("GET", url, headers)

        started = time.monotonic()
        try:
            response = await self._client.get(url, params=params, headers=headers)
        except httpx.TimeoutException as e:
            raise ServerError("TIMEOUT", f"Upstream request timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            raise ServerError("CONNECTION_ERROR", str(e)) from e

        log_http_response(response.status_code, url, (time.monotonic() - started) * 1000)

        if response.status_code >= 400:
            raise self._parse_error_response(response)

        return response

    def _parse_error_response(self, response: httpx.Response) -> UpstreamError:
        """
        Parse an error response into a typed exception.

        Args:
            response: HTTP response with error status

        Returns:
            Appropriate UpstreamError subclass
        """
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        status_code = response.status_code
        message = data.get("message") or f"HTTP {status_code}"

        if status_code == 401:
            return AuthenticationError("UNAUTHORIZED", message, status_code)
        elif status_code == 403:
            return AuthorizationError("FORBIDDEN", message, status_code)
        elif status_code == 404:
            return NotFoundError("NOT_FOUND", message, status_code)
        elif status_code == 429:
            retry_after_str = response.headers.get("Retry-After", "60")
            try:
                retry_after = int(retry_after_str)
            except ValueError:
                retry_after = 60
            return RateLimitedError("RATE_LIMITED", message, retry_after, status_code)
        elif status_code >= 500:
            return ServerError("SERVER_ERROR", message, status_code)
        else:
            return UpstreamError("UPSTREAM_ERROR", message, status_code)
