"""Repository-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal


@dataclass(frozen=True)
class RepoReference:
    """Normalized owner/repo pair parsed from a stored repository reference."""

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class AuthenticatedUser:
    """Identity behind an access token."""

    login: str
    id: int


@dataclass
class RepositoryMetadata:
    """Repository descriptor as returned by the upstream API."""

    id: int
    name: str
    full_name: str
    description: str | None
    html_url: str
    clone_url: str
    language: str | None
    private: bool
    default_branch: str
    stargazers_count: int
    forks_count: int
    open_issues_count: int
    created_at: datetime | None
    updated_at: datetime | None

    @property
    def visibility(self) -> str:
        return "private" if self.private else "public"


@dataclass
class FileEntry:
    """One entry of a directory listing."""

    name: str
    path: str
    kind: Literal["file", "dir"]
    size: int | None = None
    download_url: str | None = None

    @property
    def is_dir(self) -> bool:
        return self.kind == "dir"


@dataclass
class FilePayload:
    """Contents of a single file: base64 text plus its declared encoding."""

    name: str
    path: str
    size: int
    content: str
    encoding: str


@dataclass
class RepositorySnapshot:
    """Point-in-time view of a repository for the initial page load."""

    metadata: RepositoryMetadata
    entries: list[FileEntry] = field(default_factory=list)
    readme: str | None = None
    license: str | None = None
