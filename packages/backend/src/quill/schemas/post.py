"""Pydantic schemas for posts.

Learn: PostWrite deliberately has no owner field. Anything extra a
client sends (e.g. "owner_id") is dropped by pydantic before it reaches
the route — the owner always comes from the resolved identity.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, field_validator


class PostWrite(BaseModel):
    """Body for create and update."""

    title: str
    content: str


class PostRead(BaseModel):
    id: int
    title: str
    content: str
    owner_id: int
    owner_email: Optional[str] = None
    created_at: datetime
    is_owner: bool = False

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)


class PostEnvelope(BaseModel):
    post: PostRead


class PostList(BaseModel):
    posts: list[PostRead]
    count: int
    author_id: Optional[int] = None


class AuthorStat(BaseModel):
    owner_id: int
    owner_email: str
    post_count: int


class PostStats(BaseModel):
    total_posts: int
    posts_last_24_hours: int
    total_authors: int
    top_authors: list[AuthorStat]
