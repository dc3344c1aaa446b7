"""GitPeek testing utilities.

Provides a fake upstream API and fixtures for testing share-link flows
without network access.
"""

from gitpeek.testing.fixtures import (
    Owner,
    create_mock_entry,
    create_mock_metadata,
    create_owner,
)
from gitpeek.testing.mock import DEFAULT_TOKEN, FakeGitHub, MockCall

__all__ = [
    # Fake upstream
    "FakeGitHub",
    "MockCall",
    "DEFAULT_TOKEN",
    # Helper functions
    "Owner",
    "create_owner",
    "create_mock_metadata",
    "create_mock_entry",
]
