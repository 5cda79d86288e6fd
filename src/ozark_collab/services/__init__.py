# src/ozark_collab/services/__init__.py
"""Business logic services for the collaboration core."""

from .chat import ChatService
from .comments import CommentService
from .groups import GroupService
from .posts import PostService
from .realtime import Broadcaster, RealtimeEvent, get_broadcaster
from .users import search_users
from .votes import COMMENT_VOTES, POST_VOTES, VoteAggregator

__all__ = [
    "Broadcaster",
    "ChatService",
    "CommentService",
    "GroupService",
    "PostService",
    "RealtimeEvent",
    "VoteAggregator",
    "COMMENT_VOTES",
    "POST_VOTES",
    "get_broadcaster",
    "search_users",
]
