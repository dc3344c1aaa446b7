"""
Content aggregator.

Turns a share ID into repository content: resolves the redirect, looks up
the owner's credential, validates it, parses the repository reference and
fetches from upstream. Every public operation re-derives all of this from
the share ID; nothing is carried between calls.

Failures never cross the public boundary as exceptions. ``build_snapshot``
returns ``NotFound`` or ``AccessDenied`` values; the on-demand operations
return ``None``. The underlying cause is logged.
"""

import asyncio
import re
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from gitpeek.client import GitHubClient
from gitpeek.config import DEFAULT_WEB_BASE_URL
from gitpeek.exceptions import DecodeError, GitPeekError
from gitpeek.logging import get_logger
from gitpeek.mime import build_data_url, mime_type_for
from gitpeek.resolver import resolve
from gitpeek.store import Store
from gitpeek.types.repos import FileEntry, RepoReference, RepositorySnapshot
from gitpeek.types.results import AccessDenied, NotFound, ParseFailure
from gitpeek.types.store import Redirect

logger = get_logger("aggregator")

README_PATTERN = re.compile(r"^readme\.(md|txt|rst)$", re.IGNORECASE)
LICENSE_PATTERN = re.compile(r"^(license|licence)(\.md|\.txt)?$", re.IGNORECASE)


@dataclass(frozen=True)
class _Access:
    """Everything needed to call upstream on behalf of a redirect's owner."""

    redirect_id: str
    reference: RepoReference
    access_token: str


def find_entry(entries: list[FileEntry], pattern: re.Pattern[str]) -> FileEntry | None:
    """First file entry whose name matches ``pattern``."""
    for entry in entries:
        if entry.kind == "file" and pattern.match(entry.name):
            return entry
    return None


class ContentAggregator:
    """
    Assembles repository snapshots and serves on-demand content for share links.

    Example:
        ```python
        async with GitHubClient() as github:
            aggregator = ContentAggregator(store, github)
            result = await aggregator.build_snapshot(share_id)
            if isinstance(result, RepositorySnapshot):
                ...
        ```
    """

    def __init__(
        self,
        store: Store,
        github: GitHubClient,
        web_base_url: str = DEFAULT_WEB_BASE_URL,
    ) -> None:
        self.store = store
        self.github = github
        self.host_prefix = web_base_url.rstrip("/") + "/"

    async def _get_redirect(self, redirect_id: str) -> Redirect | None:
        try:
            return await asyncio.to_thread(self.store.get_redirect, redirect_id)
        except SQLAlchemyError:
            logger.exception("Redirect lookup failed for %s", redirect_id)
            return None

    async def _lookup(
        self,
        redirect_id: str,
        validate_token: bool = False,
    ) -> _Access | NotFound | AccessDenied:
        """
        Resolve redirect, credential and repository reference, in that order.

        With ``validate_token`` the credential is checked against the
        upstream identity endpoint before the reference is parsed.
        """
        redirect = await self._get_redirect(redirect_id)
        if redirect is None:
            return NotFound(f"no redirect {redirect_id}")

        access_token = await asyncio.to_thread(self.store.get_access_token, redirect.owner_user_id)
        if access_token is None:
            return AccessDenied("owner has no stored access token")

        if validate_token:
            try:
                await self.github.get_authenticated_user(access_token)
            except GitPeekError as e:
                return AccessDenied(f"access token rejected: {e}")

        reference = resolve(redirect.repo_reference, self.host_prefix)
        if isinstance(reference, ParseFailure):
            return NotFound(f"malformed repository reference: {reference.reason}")

        return _Access(redirect_id, reference, access_token)

    async def build_snapshot(self, redirect_id: str) -> RepositorySnapshot | NotFound | AccessDenied:
        """
        Build the initial view of a shared repository.

        Metadata and the top-level listing are required; README and LICENSE
        are best-effort.

        Returns:
            RepositorySnapshot, or NotFound / AccessDenied
        """
        access = await self._lookup(redirect_id, validate_token=True)
        if not isinstance(access, _Access):
            return self._fail(redirect_id, access)

        reference, access_token = access.reference, access.access_token
        try:
            metadata, entries = await asyncio.gather(
                self.github.get_repo_metadata(reference.owner, reference.repo, access_token),
                self.github.list_directory(reference.owner, reference.repo, access_token),
            )
        except GitPeekError as e:
            return self._fail(redirect_id, NotFound(f"upstream fetch failed: {e}"))

        readme, license_text = await asyncio.gather(
            self._fetch_enrichment(reference, access_token, find_entry(entries, README_PATTERN)),
            self._fetch_enrichment(reference, access_token, find_entry(entries, LICENSE_PATTERN)),
        )

        logger.info(
            "Built snapshot for %s (%s): %d entries, readme=%s, license=%s",
            redirect_id,
            reference.full_name,
            len(entries),
            readme is not None,
            license_text is not None,
        )
        return RepositorySnapshot(metadata=metadata, entries=entries, readme=readme, license=license_text)

    async def _fetch_enrichment(
        self,
        reference: RepoReference,
        access_token: str,
        entry: FileEntry | None,
    ) -> str | None:
        """
        Fetch README or LICENSE text. Failures are logged and yield None.

        The contents API is tried first; files it cannot decode (for example
        ones too large to be inlined) fall back to the entry's download URL.
        """
        if entry is None:
            return None
        try:
            return await self.github.get_file_raw(reference.owner, reference.repo, entry.path, access_token)
        except DecodeError as e:
            if entry.download_url is None:
                logger.warning("Skipping %s in %s: %s", entry.path, reference.full_name, e)
                return None
        except GitPeekError as e:
            logger.warning("Skipping %s in %s: %s", entry.path, reference.full_name, e)
            return None

        try:
            return await self.github.get_raw_content(entry.download_url, access_token)
        except GitPeekError as e:
            logger.warning("Skipping %s in %s: %s", entry.path, reference.full_name, e)
            return None

    async def fetch_directory(self, redirect_id: str, path: str = "") -> list[FileEntry] | None:
        """List a directory of a shared repository; None on any failure."""
        access = await self._lookup(redirect_id)
        if not isinstance(access, _Access):
            self._fail(redirect_id, access)
            return None
        try:
            return await self.github.list_directory(
                access.reference.owner, access.reference.repo, access.access_token, path
            )
        except GitPeekError as e:
            logger.warning("Directory %r of %s unavailable: %s", path, redirect_id, e)
            return None

    async def fetch_file(self, redirect_id: str, path: str) -> str | None:
        """Get a file's text from a shared repository; None on any failure."""
        access = await self._lookup(redirect_id)
        if not isinstance(access, _Access):
            self._fail(redirect_id, access)
            return None
        try:
            return await self.github.get_file_raw(
                access.reference.owner, access.reference.repo, path, access.access_token
            )
        except GitPeekError as e:
            logger.warning("File %r of %s unavailable: %s", path, redirect_id, e)
            return None

    async def fetch_image_as_data_url(self, redirect_id: str, path: str) -> str | None:
        """
        Get an image (or video) from a shared repository as a data URL.

        The owner's token is used server-side only; the browser receives the
        embedded data URL.
        """
        access = await self._lookup(redirect_id)
        if not isinstance(access, _Access):
            self._fail(redirect_id, access)
            return None

        clean_path = path[1:] if path.startswith("/") else path
        try:
            payload = await self.github.get_file_base64(
                access.reference.owner, access.reference.repo, clean_path, access.access_token
            )
        except GitPeekError as e:
            logger.warning("Image %r of %s unavailable: %s", clean_path, redirect_id, e)
            return None

        if payload.encoding != "base64" or not payload.content:
            logger.warning("Image %r of %s has no inline base64 content", clean_path, redirect_id)
            return None

        return build_data_url(mime_type_for(clean_path), payload.content)

    async def record_view(self, redirect_id: str) -> bool:
        """
        Count a visit to a share link.

        Returns:
            False if the redirect does not exist or the counter could not be updated
        """
        redirect = await self._get_redirect(redirect_id)
        if redirect is None:
            return False
        try:
            await asyncio.to_thread(self.store.update_view_count, redirect_id)
        except SQLAlchemyError:
            logger.exception("Failed to update view count for %s", redirect_id)
            return False
        return True

    def _fail(self, redirect_id: str, result: NotFound | AccessDenied) -> NotFound | AccessDenied:
        logger.info("Redirect %s unavailable (%s): %s", redirect_id, type(result).__name__, result.reason)
        return result
