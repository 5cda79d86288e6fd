# src/ozark_collab/main.py
"""Main entry point for the Ozark collaboration service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from ozark_collab.api.v1 import (
    chats_router,
    comments_router,
    groups_router,
    posts_router,
    realtime_router,
    users_router,
    votes_router,
)
from ozark_collab.core.errors import CollabError, Unauthenticated
from ozark_collab.core.settings import settings
from ozark_collab.db.session import SessionLocal, create_tables
from ozark_collab.services.bootstrap import ensure_default_group

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Posts, threaded comments, votes and group chats with realtime updates",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(posts_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(groups_router, prefix="/api/v1")
app.include_router(chats_router, prefix="/api/v1")
app.include_router(realtime_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")


@app.exception_handler(CollabError)
async def collab_error_handler(_request: Request, exc: CollabError) -> JSONResponse:
    """Render domain errors the same way HTTPException responses look."""
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


@app.on_event("startup")
async def on_startup() -> None:
    if not settings.bootstrap_on_startup:
        return
    if settings.effective_database_url.startswith("sqlite"):
        # Local development databases are not managed by Alembic.
        create_tables()
    db = SessionLocal()
    try:
        group = ensure_default_group(db)
        logger.info("Default group ready (id=%d)", group.id)
    finally:
        db.close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Collaboration core: votes, comment trees, group chats",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("ozark_collab.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
