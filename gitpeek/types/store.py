"""Persisted record models, detached from the ORM session."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Redirect:
    """Mapping from a share ID to an owner and a repository reference."""

    id: str
    owner_user_id: str
    repo_reference: str
    created_at: datetime | None


@dataclass
class ViewStats:
    """View counter for one redirect."""

    redirect_id: str
    count: int
    last_viewed_at: datetime | None


@dataclass
class PublishedRepo:
    """A redirect as listed on its owner's dashboard."""

    id: str
    repo_reference: str
    created_at: datetime | None
    view_count: int
    last_viewed_at: datetime | None
