# src/ozark_collab/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    chats_router,
    comments_router,
    groups_router,
    posts_router,
    realtime_router,
    users_router,
    votes_router,
)

__all__ = [
    "chats_router",
    "comments_router",
    "groups_router",
    "posts_router",
    "realtime_router",
    "users_router",
    "votes_router",
]
