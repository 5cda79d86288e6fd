# src/ozark_collab/models/__init__.py
"""SQLAlchemy models for the collaboration service."""

from .chat import ChatGroup, ChatGroupMember, ChatMessage, PrivateChat, PrivateMessage
from .comment import PostComment
from .notification import Notification
from .post import Post, SharedPost
from .user import User
from .vote import PostCommentVote, PostVote

__all__ = [
    "ChatGroup", "ChatGroupMember", "ChatMessage",
    "PrivateChat", "PrivateMessage",
    "Notification",
    "Post", "PostComment", "SharedPost",
    "PostVote", "PostCommentVote",
    "User",
]
