"""
Pytest plugin for GitPeek testing fixtures.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["gitpeek.testing.conftest"]
"""

from gitpeek.testing.fixtures import (
    aggregator,
    fake_github,
    github,
    owner,
    store,
)

__all__ = [
    "fake_github",
    "store",
    "github",
    "owner",
    "aggregator",
]
