"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Unlike a blanket dependencies=[...] on include_router, auth is
declared per route here: the posts router mixes public reads (optional
identity) with owner-only writes (mandatory identity), so each handler
picks its own policy.
"""

from fastapi import APIRouter

from quill.api.auth import router as auth_router
from quill.api.health import router as health_router
from quill.api.posts import router as posts_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(posts_router, tags=["posts"])
