"""GitPeek type definitions.

This module exports all data model types used by the package.
"""

from gitpeek.types.repos import (
    AuthenticatedUser,
    FileEntry,
    FilePayload,
    RepoReference,
    RepositoryMetadata,
    RepositorySnapshot,
)
from gitpeek.types.results import AccessDenied, NotFound, ParseFailure
from gitpeek.types.store import PublishedRepo, Redirect, ViewStats

__all__ = [
    # Upstream types
    "AuthenticatedUser",
    "FileEntry",
    "FilePayload",
    "RepoReference",
    "RepositoryMetadata",
    "RepositorySnapshot",
    # Failure values
    "AccessDenied",
    "NotFound",
    "ParseFailure",
    # Store records
    "PublishedRepo",
    "Redirect",
    "ViewStats",
]
