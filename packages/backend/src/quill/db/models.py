"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations are written against these models.

Key concepts:
- Integer autoincrement primary keys (ids are opaque numbers to clients)
- Email uniqueness is a UNIQUE constraint, not just an application check
- created_at is stamped in Python with microsecond precision so
  newest-first ordering is stable even on SQLite
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """A registered identity.

    Learn: password_hash never leaves the service layer — API schemas
    expose only the safe view {id, email, created_at}. Users are never
    updated in place; there's no back-reference to posts (they're
    resolved by query when needed).
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"


class Post(Base):
    """A text post owned by the user who created it.

    Learn: owner_id is written exactly once, at creation, from the
    authenticated identity. PostService never touches it on update.
    The owner relationship is eager-loaded (async sessions can't
    lazy-load) so views can show the owner's email.
    """

    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_owner_created", "owner_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    owner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    # Relationships
    owner: Mapped["User"] = relationship(lazy="joined")

    def __repr__(self) -> str:
        return f"<Post id={self.id} owner_id={self.owner_id}>"
