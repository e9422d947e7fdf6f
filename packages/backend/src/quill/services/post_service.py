"""Post service — ownership-gated post lifecycle.

Learn: Every mutation goes through the ownership gate:
1. load the post (missing → PostNotFoundError)
2. compare post.owner_id with the requesting user (mismatch → NotOwnerError)
3. only then validate and persist

owner_id comes from the caller's resolved identity and is written once,
at creation. Nothing here accepts an owner from request data, and
update_post never touches it.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quill.config import settings
from quill.db.models import Post, User
from quill.errors import NotOwnerError, PostNotFoundError, ValidationError
from quill.services.validation import is_encodable

logger = structlog.get_logger()


def clean_post_fields(title: Optional[str], content: Optional[str]) -> tuple[str, str]:
    """Trim and validate title/content. Returns the trimmed pair."""
    title = (title or "").strip()
    content = (content or "").strip()
    if not title:
        raise ValidationError("Title is required", field="title")
    if not content:
        raise ValidationError("Content is required", field="content")
    if not is_encodable(title):
        raise ValidationError("Title contains invalid characters", field="title")
    if not is_encodable(content):
        raise ValidationError("Content contains invalid characters", field="content")
    if len(title) < settings.title_min_length:
        raise ValidationError(
            f"Title must be at least {settings.title_min_length} characters long",
            field="title",
        )
    if len(content) < settings.content_min_length:
        raise ValidationError(
            f"Content must be at least {settings.content_min_length} characters long",
            field="content",
        )
    return title, content


def summarize(content: str, max_length: Optional[int] = None) -> str:
    """Truncate content at the last word boundary before max_length."""
    max_length = max_length or settings.summary_max_length
    if len(content) <= max_length:
        return content
    truncated = content[:max_length]
    cut = truncated.rfind(" ")
    if cut > 0:
        truncated = truncated[:cut]
    return truncated + "..."


class PostService:
    """Business logic for posts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create ─────────────────────────────────────────

    async def create_post(self, title: str, content: str, *, owner_id: int) -> Post:
        title, content = clean_post_fields(title, content)
        post = Post(title=title, content=content, owner_id=owner_id)
        self.db.add(post)
        await self.db.commit()
        logger.info("post.created", post_id=post.id, owner_id=owner_id)
        return await self.get_post(post.id)

    # ─── Read ───────────────────────────────────────────

    async def get_post(self, post_id: int) -> Optional[Post]:
        result = await self.db.execute(
            select(Post).where(Post.id == post_id).execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def list_posts(self, owner_id: Optional[int] = None) -> list[Post]:
        """Newest first. Ties on created_at fall back to id, newest first."""
        q = select(Post).order_by(Post.created_at.desc(), Post.id.desc())
        if owner_id is not None:
            q = q.where(Post.owner_id == owner_id)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    # ─── Update ─────────────────────────────────────────

    async def update_post(
        self,
        post_id: int,
        title: str,
        content: str,
        *,
        requesting_user_id: int,
    ) -> Post:
        post = await self._get_owned(post_id, requesting_user_id, action="edit")
        title, content = clean_post_fields(title, content)

        post.title = title
        post.content = content
        await self.db.commit()
        logger.info("post.updated", post_id=post_id, owner_id=post.owner_id)
        return post

    # ─── Delete ─────────────────────────────────────────

    async def delete_post(self, post_id: int, *, requesting_user_id: int) -> None:
        await self._get_owned(post_id, requesting_user_id, action="delete")

        result = await self.db.execute(
            delete(Post).where(
                Post.id == post_id, Post.owner_id == requesting_user_id
            )
        )
        if result.rowcount == 0:
            # Deleted by a concurrent request between load and delete.
            await self.db.rollback()
            raise PostNotFoundError(post_id)
        await self.db.commit()
        logger.info("post.deleted", post_id=post_id, owner_id=requesting_user_id)

    # ─── Stats ──────────────────────────────────────────

    async def stats(self, top_n: int = 5) -> dict:
        """Totals, last-24h count, and the most prolific authors."""
        total = (await self.db.execute(select(func.count(Post.id)))).scalar_one()

        since = datetime.now(timezone.utc) - timedelta(hours=24)
        recent = (
            await self.db.execute(
                select(func.count(Post.id)).where(Post.created_at > since)
            )
        ).scalar_one()

        post_count = func.count(Post.id).label("post_count")
        rows = (
            await self.db.execute(
                select(Post.owner_id, User.email, post_count)
                .join(User, User.id == Post.owner_id)
                .group_by(Post.owner_id, User.email)
                .order_by(post_count.desc(), Post.owner_id)
            )
        ).all()

        return {
            "total_posts": total,
            "posts_last_24_hours": recent,
            "total_authors": len(rows),
            "top_authors": [
                {"owner_id": r.owner_id, "owner_email": r.email, "post_count": r.post_count}
                for r in rows[:top_n]
            ],
        }

    # ─── Ownership gate ─────────────────────────────────

    async def _get_owned(self, post_id: int, requesting_user_id: int, action: str) -> Post:
        post = await self.get_post(post_id)
        if not post:
            raise PostNotFoundError(post_id)
        if post.owner_id != requesting_user_id:
            logger.warning(
                "post.forbidden",
                post_id=post_id,
                owner_id=post.owner_id,
                requesting_user_id=requesting_user_id,
                action=action,
            )
            raise NotOwnerError(action)
        return post
