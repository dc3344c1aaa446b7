"""
Pytest fixtures for GitPeek testing.

Provides an in-memory store, a fake upstream and an aggregator wired to
both, plus helpers that publish share links ready to be visited.
"""

from collections.abc import Generator
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pytest

from gitpeek.aggregator import ContentAggregator
from gitpeek.client import GitHubClient
from gitpeek.store import Store
from gitpeek.testing.mock import DEFAULT_TOKEN, FakeGitHub
from gitpeek.types.repos import FileEntry, RepositoryMetadata


@dataclass
class Owner:
    """A user with a linked upstream account."""

    user_id: str
    access_token: str | None


# ============================================================================
# Infrastructure Fixtures
# ============================================================================


@pytest.fixture
def fake_github() -> Generator[FakeGitHub, None, None]:
    """
    Provide a FakeGitHub with one repository, ``acme/widgets``.

    Example:
        ```python
        def test_listing(fake_github, github):
            fake_github.add_file("acme", "widgets", "src/app.py", "print()")
            entries = asyncio.run(github.list_directory("acme", "widgets", fake_github.token))
        ```
    """
    fake = FakeGitHub()
    fake.add_repo("acme", "widgets")
    yield fake
    fake.reset()


@pytest.fixture
def store() -> Generator[Store, None, None]:
    """Provide an empty in-memory store with all tables created."""
    db = Store.from_url("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def github(fake_github: FakeGitHub) -> GitHubClient:
    """Provide a GitHubClient that talks to ``fake_github``."""
    return GitHubClient(transport=fake_github.transport())


@pytest.fixture
def owner(store: Store, fake_github: FakeGitHub) -> Owner:
    """Provide a user whose stored token ``fake_github`` accepts."""
    return create_owner(store, access_token=fake_github.token)


@pytest.fixture
def aggregator(store: Store, github: GitHubClient) -> ContentAggregator:
    """
    Provide a ContentAggregator over ``store`` and ``fake_github``.

    Example:
        ```python
        def test_share(aggregator, store, owner):
            redirect = store.publish(owner.user_id, "acme/widgets")
            result = asyncio.run(aggregator.build_snapshot(redirect.id))
        ```
    """
    return ContentAggregator(store, github)


# ============================================================================
# Helper Functions
# ============================================================================


def create_owner(
    store: Store,
    access_token: str | None = DEFAULT_TOKEN,
    name: str = "Test Owner",
    email: str | None = None,
) -> Owner:
    """
    Insert a user and, when ``access_token`` is given, a linked account.

    Args:
        store: Store to insert into
        access_token: Token to store, or None for a user without an account
        name: Display name
        email: Email address (unique per store)

    Returns:
        Owner with the new user's id
    """
    user_id = store.add_user(name=name, email=email)
    if access_token is not None:
        store.link_account(user_id, provider_account_id=f"gh-{user_id}", access_token=access_token, scope="repo")
    return Owner(user_id=user_id, access_token=access_token)


def create_mock_metadata(
    owner: str = "acme",
    repo: str = "widgets",
    **kwargs: Any,
) -> RepositoryMetadata:
    """Create RepositoryMetadata with customizable fields."""
    full_name = f"{owner}/{repo}"
    defaults = {
        "id": 1000,
        "description": None,
        "html_url": f"https://github.com/{full_name}",
        "clone_url": f"https://github.com/{full_name}.git",
        "language": None,
        "private": True,
        "default_branch": "main",
        "stargazers_count": 0,
        "forks_count": 0,
        "open_issues_count": 0,
        "created_at": datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        "updated_at": datetime(2024, 6, 7, 8, 9, 10, tzinfo=timezone.utc),
    }
    defaults.update(kwargs)
    return RepositoryMetadata(name=repo, full_name=full_name, **defaults)


def create_mock_entry(path: str, kind: str = "file", size: int | None = 10) -> FileEntry:
    """Create a FileEntry; the name is the last path segment."""
    return FileEntry(
        name=path.rsplit("/", 1)[-1],
        path=path,
        kind=kind,
        size=size if kind == "file" else None,
        download_url=f"https://raw.githubusercontent.com/acme/widgets/main/{path}" if kind == "file" else None,
    )


__all__ = [
    # Fixtures (exported for documentation, actual fixtures are auto-discovered)
    "fake_github",
    "store",
    "github",
    "owner",
    "aggregator",
    # Helper functions
    "Owner",
    "create_owner",
    "create_mock_metadata",
    "create_mock_entry",
]
