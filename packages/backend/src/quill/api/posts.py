"""Post API routes.

Learn: Routes handle HTTP concerns, PostService handles the rules:
- GET /posts → everyone (optional identity personalises is_owner)
- GET /posts/my → the caller's own posts
- GET /posts/stats → public counters
- GET /posts/:id → everyone
- POST /posts → authenticated; owner = resolved identity
- PUT /posts/:id → owner only
- DELETE /posts/:id → owner only

Path ids are positive integers (Path(gt=0)); anything else is a 422.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from quill.auth.dependencies import (
    CurrentIdentity,
    get_current_user,
    get_current_user_optional,
)
from quill.db.engine import get_db
from quill.db.models import Post
from quill.errors import PostNotFoundError, UserNotFoundError
from quill.schemas.post import PostEnvelope, PostList, PostStats, PostWrite
from quill.services.post_service import PostService, summarize
from quill.services.user_service import UserService

router = APIRouter(prefix="/posts")


def _svc(db: AsyncSession = Depends(get_db)) -> PostService:
    return PostService(db)


def _view(post: Post, identity: CurrentIdentity, summary: bool = False) -> dict:
    return {
        "id": post.id,
        "title": post.title,
        "content": summarize(post.content) if summary else post.content,
        "owner_id": post.owner_id,
        "owner_email": post.owner.email if post.owner else None,
        "created_at": post.created_at,
        "is_owner": identity.is_authenticated and identity.user_id == post.owner_id,
    }


# ─── Lists ──────────────────────────────────────────────


@router.get("", response_model=PostList)
async def list_posts(
    author: Optional[int] = Query(None, gt=0, description="Only posts by this user id"),
    identity: CurrentIdentity = Depends(get_current_user_optional),
    svc: PostService = Depends(_svc),
):
    """All posts, newest first. Optionally filtered by author."""
    if author is not None and not await UserService(svc.db).find_by_id(author):
        raise UserNotFoundError(author)

    posts = await svc.list_posts(owner_id=author)
    return {
        "posts": [_view(p, identity, summary=True) for p in posts],
        "count": len(posts),
        "author_id": author,
    }


@router.get("/my", response_model=PostList)
async def my_posts(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PostService = Depends(_svc),
):
    posts = await svc.list_posts(owner_id=identity.user_id)
    return {
        "posts": [_view(p, identity, summary=True) for p in posts],
        "count": len(posts),
    }


@router.get("/stats", response_model=PostStats)
async def post_stats(svc: PostService = Depends(_svc)):
    return await svc.stats()


# ─── Single post ────────────────────────────────────────


@router.get("/{post_id}", response_model=PostEnvelope)
async def get_post(
    post_id: int = Path(gt=0),
    identity: CurrentIdentity = Depends(get_current_user_optional),
    svc: PostService = Depends(_svc),
):
    post = await svc.get_post(post_id)
    if not post:
        raise PostNotFoundError(post_id)
    return {"post": _view(post, identity)}


@router.post("", response_model=PostEnvelope, status_code=201)
async def create_post(
    body: PostWrite,
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PostService = Depends(_svc),
):
    """Create a post owned by the caller."""
    post = await svc.create_post(body.title, body.content, owner_id=identity.user_id)
    return {"post": _view(post, identity)}


@router.put("/{post_id}", response_model=PostEnvelope)
async def update_post(
    body: PostWrite,
    post_id: int = Path(gt=0),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PostService = Depends(_svc),
):
    post = await svc.update_post(
        post_id, body.title, body.content, requesting_user_id=identity.user_id
    )
    return {"post": _view(post, identity)}


@router.delete("/{post_id}", status_code=204)
async def delete_post(
    post_id: int = Path(gt=0),
    identity: CurrentIdentity = Depends(get_current_user),
    svc: PostService = Depends(_svc),
):
    await svc.delete_post(post_id, requesting_user_id=identity.user_id)
    return Response(status_code=204)
