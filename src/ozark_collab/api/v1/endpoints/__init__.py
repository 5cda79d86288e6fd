# src/ozark_collab/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .chats import router as chats_router
from .comments import router as comments_router
from .groups import router as groups_router
from .posts import router as posts_router
from .realtime import router as realtime_router
from .users import router as users_router
from .votes import router as votes_router

__all__ = [
    "chats_router",
    "comments_router",
    "groups_router",
    "posts_router",
    "realtime_router",
    "users_router",
    "votes_router",
]
