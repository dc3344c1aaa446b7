"""
Upstream content client.

Authenticated read-only calls against the GitHub REST API: identity,
repository metadata, directory listings and file contents. Every response is
parsed into a typed model here; a body with a missing or wrongly typed field
raises DecodeError instead of leaking ``None`` into callers.
"""

import base64
import binascii
from datetime import datetime
from typing import Any
from urllib.parse import quote, urlsplit

import httpx

from gitpeek.config import DEFAULT_API_BASE_URL, DEFAULT_RAW_BASE_URL, DEFAULT_TIMEOUT
from gitpeek.exceptions import DecodeError, GitPeekError
from gitpeek.transport import HTTPTransport
from gitpeek.types.repos import (
    AuthenticatedUser,
    FileEntry,
    FilePayload,
    RepositoryMetadata,
)


def _require(data: Any, key: str, kind: type | tuple[type, ...]) -> Any:
    """Fetch a required field, checking its type."""
    if not isinstance(data, dict):
        raise DecodeError(f"Expected an object, got {type(data).__name__}")
    if key not in data:
        raise DecodeError(f"Missing field '{key}'")
    value = data[key]
    # bool is an int subclass; never accept it for numeric fields
    if isinstance(value, bool) and kind is int:
        raise DecodeError(f"Field '{key}' has type bool")
    if not isinstance(value, kind):
        raise DecodeError(f"Field '{key}' has type {type(value).__name__}")
    return value


def _optional(data: dict[str, Any], key: str, kind: type | tuple[type, ...]) -> Any:
    """Fetch an optional field; null and absent are both None."""
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) and kind is int:
        raise DecodeError(f"Field '{key}' has type bool")
    if not isinstance(value, kind):
        raise DecodeError(f"Field '{key}' has type {type(value).__name__}")
    return value


def _parse_timestamp(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise DecodeError(f"Invalid timestamp '{value}'") from e


def _parse_user(data: Any) -> AuthenticatedUser:
    return AuthenticatedUser(
        login=_require(data, "login", str),
        id=_require(data, "id", int),
    )


def _parse_repository(data: Any) -> RepositoryMetadata:
    """Parse a repository descriptor."""
    return RepositoryMetadata(
        id=_require(data, "id", int),
        name=_require(data, "name", str),
        full_name=_require(data, "full_name", str),
        description=_optional(data, "description", str),
        html_url=_require(data, "html_url", str),
        clone_url=_optional(data, "clone_url", str) or "",
        language=_optional(data, "language", str),
        private=_require(data, "private", bool),
        default_branch=_optional(data, "default_branch", str) or "main",
        stargazers_count=_optional(data, "stargazers_count", int) or 0,
        forks_count=_optional(data, "forks_count", int) or 0,
        open_issues_count=_optional(data, "open_issues_count", int) or 0,
        created_at=_parse_timestamp(_optional(data, "created_at", str)),
        updated_at=_parse_timestamp(_optional(data, "updated_at", str)),
    )


def _parse_entry(data: Any) -> FileEntry:
    """Parse one directory listing entry.

    Symlinks and submodules are listed as files; they have no children to browse.
    """
    kind = _require(data, "type", str)
    return FileEntry(
        name=_require(data, "name", str),
        path=_require(data, "path", str),
        kind="dir" if kind == "dir" else "file",
        size=_optional(data, "size", int),
        download_url=_optional(data, "download_url", str),
    )


def _parse_file(data: Any) -> FilePayload:
    if isinstance(data, list):
        raise DecodeError("Path is a directory, not a file")
    if _require(data, "type", str) != "file":
        raise DecodeError(f"Path is a {data['type']}, not a file")
    return FilePayload(
        name=_require(data, "name", str),
        path=_require(data, "path", str),
        size=_optional(data, "size", int) or 0,
        content=_optional(data, "content", str) or "",
        encoding=_optional(data, "encoding", str) or "none",
    )


def decode_base64_text(payload: FilePayload) -> str:
    """
    Decode a file payload into text.

    Raises:
        DecodeError: If the declared encoding is not base64, the payload is not
            valid base64, or the bytes are not UTF-8
    """
    if payload.encoding != "base64":
        raise DecodeError(f"Unsupported encoding '{payload.encoding}' for {payload.path}")
    try:
        raw = base64.b64decode(payload.content, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 content for {payload.path}") from e
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"{payload.path} is not UTF-8 text") from e


def _contents_path(owner: str, repo: str, path: str = "") -> str:
    """
    Build the contents URL path for a file or directory of one repository.

    Raises:
        DecodeError: If the path has dot segments; the URL would otherwise
            normalise to another repository
    """
    base = f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}/contents"
    segments = [segment for segment in path.split("/") if segment]
    if any(segment in (".", "..") for segment in segments):
        raise DecodeError(f"Path '{path}' leaves the repository")
    if not segments:
        return base
    return base + "/" + "/".join(quote(segment, safe="") for segment in segments)


class GitHubClient:
    """Client for read-only repository content operations."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        raw_base_url: str = DEFAULT_RAW_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the content client.

        Args:
            base_url: Upstream API base URL
            raw_base_url: Raw content host; the only other host a token is sent to
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport for tests
        """
        self._transport = HTTPTransport(base_url, timeout=timeout, transport=transport)
        self._trusted_hosts = {
            urlsplit(base_url).hostname,
            urlsplit(raw_base_url).hostname,
        }

    @property
    def transport(self) -> HTTPTransport:
        """Get the underlying HTTP transport."""
        return self._transport

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._transport.close()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get_authenticated_user(self, access_token: str) -> AuthenticatedUser:
        """
        Get the identity behind a token.

        Used to validate a stored token before serving content with it.

        Raises:
            AuthenticationError: If the token is revoked or expired
        """
        data = await self._transport.request("/user", access_token)
        return _parse_user(data)

    async def get_repo_metadata(self, owner: str, repo: str, access_token: str) -> RepositoryMetadata:
        """
        Get repository metadata.

        Raises:
            NotFoundError: If the repository does not exist or is not visible to the token
            DecodeError: If the response does not describe a repository
        """
        data = await self._transport.request(
            f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}", access_token
        )
        return _parse_repository(data)

    async def list_directory(
        self,
        owner: str,
        repo: str,
        access_token: str,
        path: str = "",
    ) -> list[FileEntry]:
        """
        List a directory, in the order upstream returns it.

        Args:
            owner: Repository owner
            repo: Repository name
            access_token: Owner's access token
            path: Directory path relative to the repository root ("" for the root)

        Raises:
            DecodeError: If the path names a file or the listing is malformed
        """
        data = await self._transport.request(_contents_path(owner, repo, path), access_token)
        if not isinstance(data, list):
            raise DecodeError(f"'{path}' is not a directory")
        return [_parse_entry(item) for item in data]

    async def get_file_base64(self, owner: str, repo: str, path: str, access_token: str) -> FilePayload:
        """
        Get a file's base64 payload and declared encoding.

        Line breaks inserted by upstream into the base64 text are removed, so
        the payload can go straight into a data URL.
        """
        data = await self._transport.request(_contents_path(owner, repo, path), access_token)
        payload = _parse_file(data)
        payload.content = payload.content.replace("\n", "").replace("\r", "")
        return payload

    async def get_file_raw(self, owner: str, repo: str, path: str, access_token: str) -> str:
        """
        Get a file's decoded text content.

        Raises:
            DecodeError: If the payload is not base64-encoded UTF-8 text
        """
        payload = await self.get_file_base64(owner, repo, path, access_token)
        return decode_base64_text(payload)

    async def get_raw_content(self, url: str, access_token: str) -> str:
        """
        Fetch a direct raw-content URL (a listing entry's ``download_url``).

        Raises:
            GitPeekError: If the URL points outside the API and raw hosts
        """
        if urlsplit(url).hostname not in self._trusted_hosts:
            raise GitPeekError("UNTRUSTED_URL", f"Refusing to send credentials to {urlsplit(url).hostname}")
        return await self._transport.request_text(url, access_token)

    async def list_user_repositories(self, access_token: str, per_page: int = 100) -> list[RepositoryMetadata]:
        """
        List repositories visible to the token, most recently updated first.

        Used when publishing, to let the owner pick a repository.
        """
        data = await self._transport.request(
            "/user/repos",
            access_token,
            params={"per_page": per_page, "type": "all", "sort": "updated"},
        )
        if not isinstance(data, list):
            raise DecodeError("Repository listing is not a list")
        return [_parse_repository(item) for item in data]
