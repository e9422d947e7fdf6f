"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (table bootstrap, engine
disposal). Middleware, CORS, exception handlers, and routers are all
registered here.

Exception handlers are the single place errors become responses:
- QuillError subclasses → their own status + {"error", "message", "details"}
- request validation (pydantic) → 422 in the same shape
- anything else → logged, generic 500, no internal detail leaked
"""

from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quill import __version__
from quill.api import api_router
from quill.config import settings
from quill.errors import AuthenticationError, QuillError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: FastAPI lifespan replaces on_event("startup") / on_event("shutdown").
    Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    from quill.db.engine import create_tables, engine

    logger.info(
        "quill.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    if settings.auto_create_tables:
        await create_tables()
        logger.info("quill.tables_ready")

    yield

    logger.info("quill.shutdown")
    await engine.dispose()


# ─── Exception handlers ───────────────────────────────────


async def handle_quill_error(request: Request, exc: QuillError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code, content=exc.to_dict(), headers=headers
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "error": "validation_failed",
            "message": "Request validation failed",
            "details": {"errors": errors},
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("quill.unhandled_error", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal",
            "message": "An unexpected error occurred",
            "details": {},
        },
    )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Quill",
        description="Multi-user publishing platform — accounts, bearer tokens, owner-gated posts",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler

    from quill.middleware.request_id import RequestIdMiddleware
    from quill.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    app.add_exception_handler(QuillError, handle_quill_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # Mount API routes
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: quill.main:app)
app = create_app()


def serve() -> None:
    """Run the API under uvicorn on the configured host and port."""
    uvicorn.run(
        "quill.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
