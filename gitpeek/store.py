"""
Persisted store: users, OAuth accounts, redirects and view counts.

Table and column names follow the auth adapter's schema so the identity
provider and GitPeek can share one database. Every public method opens its
own short session; records are returned as detached dataclasses.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    PrimaryKeyConstraint,
    String,
    Text,
    create_engine,
    event,
    func,
    select,
)
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    relationship,
    sessionmaker,
)
from sqlalchemy.pool import StaticPool

from gitpeek.exceptions import ConfigurationError
from gitpeek.logging import get_logger, mask_token
from gitpeek.types.store import PublishedRepo, Redirect, ViewStats

logger = get_logger("store")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class UserRecord(Base):
    __tablename__ = "user"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    name: Mapped[str | None] = mapped_column(Text)
    email: Mapped[str | None] = mapped_column(Text, unique=True)
    image: Mapped[str | None] = mapped_column(Text)

    accounts: Mapped[list["AccountRecord"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    redirects: Mapped[list["RedirectRecord"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )


class AccountRecord(Base):
    __tablename__ = "account"
    __table_args__ = (PrimaryKeyConstraint("provider", "providerAccountId"),)

    user_id: Mapped[str] = mapped_column(
        "userId", Text, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="oauth")
    provider: Mapped[str] = mapped_column(Text, nullable=False)
    provider_account_id: Mapped[str] = mapped_column("providerAccountId", Text, nullable=False)
    access_token: Mapped[str | None] = mapped_column(Text)
    refresh_token: Mapped[str | None] = mapped_column(Text)
    expires_at: Mapped[int | None] = mapped_column(Integer)
    token_type: Mapped[str | None] = mapped_column(Text)
    scope: Mapped[str | None] = mapped_column(Text)

    user: Mapped[UserRecord] = relationship(back_populates="accounts")


class RedirectRecord(Base):
    __tablename__ = "redirect"

    id: Mapped[str] = mapped_column(Text, primary_key=True, default=_new_id)
    repo_reference: Mapped[str] = mapped_column("githubRepoId", Text, nullable=False)
    user_id: Mapped[str] = mapped_column(
        "userId", Text, ForeignKey("user.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime | None] = mapped_column(
        "createdAt", DateTime(timezone=True), default=_utcnow
    )

    user: Mapped[UserRecord] = relationship(back_populates="redirects")
    view_count: Mapped["ViewCountRecord | None"] = relationship(
        back_populates="redirect", cascade="all, delete-orphan", passive_deletes=True
    )

    def to_redirect(self) -> Redirect:
        return Redirect(
            id=self.id,
            owner_user_id=self.user_id,
            repo_reference=self.repo_reference,
            created_at=self.created_at,
        )


class ViewCountRecord(Base):
    __tablename__ = "viewCount"

    redirect_id: Mapped[str] = mapped_column(
        "id", Text, ForeignKey("redirect.id", ondelete="CASCADE"), primary_key=True
    )
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_viewed: Mapped[datetime | None] = mapped_column(
        "lastViewed", DateTime(timezone=True), default=_utcnow
    )

    redirect: Mapped[RedirectRecord] = relationship(back_populates="view_count")


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Store:
    """
    Relational store used by the aggregator and the HTTP surface.

    Example:
        ```python
        store = Store.from_url("sqlite:///gitpeek.db")
        store.create_all()
        redirect = store.publish(user_id, "acme/widgets")
        store.update_view_count(redirect.id)
        ```
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions = sessionmaker(engine, expire_on_commit=False)
        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    @classmethod
    def from_url(cls, database_url: str, **engine_kwargs: Any) -> "Store":
        """
        Create a store from a SQLAlchemy database URL.

        Only SQLite and PostgreSQL are supported: the view counter relies on
        their INSERT ... ON CONFLICT syntax.

        Raises:
            ConfigurationError: For any other backend
        """
        url = make_url(database_url)
        backend = url.get_backend_name()
        if backend not in ("sqlite", "postgresql"):
            raise ConfigurationError(f"Unsupported database backend: {backend}")

        # An in-memory SQLite database exists per connection; share one
        # connection so worker threads see the same data.
        if backend == "sqlite" and url.database in (None, "", ":memory:"):
            engine_kwargs.setdefault("poolclass", StaticPool)
            engine_kwargs.setdefault("connect_args", {"check_same_thread": False})

        return cls(create_engine(url, **engine_kwargs))

    def create_all(self) -> None:
        """Create any missing tables."""
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Transactional session: commits on success, rolls back on error."""
        with self._sessions.begin() as session:
            yield session

    # -- users and credentials -------------------------------------------

    def add_user(
        self,
        name: str | None = None,
        email: str | None = None,
        user_id: str | None = None,
    ) -> str:
        """Insert a user and return its id."""
        with self.session() as session:
            record = UserRecord(id=user_id or _new_id(), name=name, email=email)
            session.add(record)
        return record.id

    def link_account(
        self,
        user_id: str,
        provider_account_id: str,
        access_token: str | None,
        scope: str | None = None,
        provider: str = "github",
    ) -> None:
        """Store the identity provider's account row for a user."""
        with self.session() as session:
            session.add(
                AccountRecord(
                    user_id=user_id,
                    provider=provider,
                    provider_account_id=provider_account_id,
                    access_token=access_token,
                    token_type="bearer",
                    scope=scope,
                )
            )
        logger.info("Linked %s account for user %s (token %s)", provider, user_id, mask_token(access_token))

    def get_access_token(self, user_id: str) -> str | None:
        """
        Get the upstream access token stored for a user.

        Storage failures are logged and reported as None, the same as a user
        without a token.
        """
        stmt = (
            select(AccountRecord.access_token)
            .join(UserRecord, AccountRecord.user_id == UserRecord.id)
            .where(UserRecord.id == user_id)
            .limit(1)
        )
        try:
            with self.session() as session:
                token = session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError:
            logger.exception("Credential lookup failed for user %s", user_id)
            return None
        return token or None

    # -- redirects --------------------------------------------------------

    def get_redirect(self, redirect_id: str) -> Redirect | None:
        with self.session() as session:
            record = session.get(RedirectRecord, redirect_id)
            return record.to_redirect() if record is not None else None

    def publish(self, user_id: str, repo_reference: str) -> Redirect:
        """Create a redirect for a repository owned by ``user_id``."""
        with self.session() as session:
            record = RedirectRecord(
                id=_new_id(),
                user_id=user_id,
                repo_reference=repo_reference,
                created_at=_utcnow(),
            )
            session.add(record)
            session.flush()
            redirect = record.to_redirect()
        logger.info("Published %s as %s", repo_reference, redirect.id)
        return redirect

    def delete_redirect(self, redirect_id: str, user_id: str) -> bool:
        """
        Delete a redirect owned by ``user_id``.

        Returns:
            False if no such redirect belongs to the user
        """
        with self.session() as session:
            record = session.scalars(
                select(RedirectRecord).where(
                    RedirectRecord.id == redirect_id, RedirectRecord.user_id == user_id
                )
            ).one_or_none()
            if record is None:
                return False
            session.delete(record)
        logger.info("Deleted redirect %s", redirect_id)
        return True

    def list_published(self, user_id: str) -> list[PublishedRepo]:
        """List a user's redirects with their view counts, oldest first."""
        stmt = (
            select(RedirectRecord, ViewCountRecord)
            .outerjoin(ViewCountRecord, RedirectRecord.id == ViewCountRecord.redirect_id)
            .where(RedirectRecord.user_id == user_id)
            .order_by(RedirectRecord.created_at)
        )
        with self.session() as session:
            rows = session.execute(stmt).all()
            return [
                PublishedRepo(
                    id=redirect.id,
                    repo_reference=redirect.repo_reference,
                    created_at=redirect.created_at,
                    view_count=views.count if views is not None else 0,
                    last_viewed_at=views.last_viewed if views is not None else None,
                )
                for redirect, views in rows
            ]

    # -- view counts ------------------------------------------------------

    def update_view_count(self, redirect_id: str, viewed_at: datetime | None = None) -> None:
        """
        Increment a redirect's view count, creating it on the first view.

        A single INSERT ... ON CONFLICT DO UPDATE statement, so concurrent
        views never lose an increment.
        """
        viewed_at = viewed_at or _utcnow()
        table = ViewCountRecord.__table__
        if self.engine.dialect.name == "postgresql":
            insert = postgresql.insert
        else:
            insert = sqlite.insert

        stmt = insert(table).values(id=redirect_id, count=1, lastViewed=viewed_at)
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.id],
            set_={"count": table.c["count"] + 1, "lastViewed": viewed_at},
        )
        with self.session() as session:
            session.execute(stmt)

    def get_view_stats(self, redirect_id: str) -> ViewStats:
        """Get a redirect's view stats; zero when it has never been viewed."""
        with self.session() as session:
            record = session.get(ViewCountRecord, redirect_id)
            if record is None:
                return ViewStats(redirect_id=redirect_id, count=0, last_viewed_at=None)
            return ViewStats(
                redirect_id=redirect_id,
                count=record.count,
                last_viewed_at=record.last_viewed,
            )

    def get_total_views(self, user_id: str) -> int:
        """Sum of view counts across all of a user's redirects."""
        stmt = (
            select(func.coalesce(func.sum(ViewCountRecord.count), 0))
            .select_from(RedirectRecord)
            .outerjoin(ViewCountRecord, RedirectRecord.id == ViewCountRecord.redirect_id)
            .where(RedirectRecord.user_id == user_id)
        )
        with self.session() as session:
            return int(session.execute(stmt).scalar_one())
