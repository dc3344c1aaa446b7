"""Failure values returned across the resolver and aggregator boundaries.

These are values, not exceptions: callers branch on them with
``isinstance``. The ``reason`` fields are for logs and tests only and are
never shown to share-link visitors.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ParseFailure:
    """A stored repository reference that could not be parsed."""

    raw: str
    reason: str


@dataclass(frozen=True)
class NotFound:
    """Redirect missing, repository missing upstream, or malformed reference."""

    reason: str


@dataclass(frozen=True)
class AccessDenied:
    """No stored credential, or the credential was rejected upstream."""

    reason: str
