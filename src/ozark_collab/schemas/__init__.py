# src/ozark_collab/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .chat import (
    ChatMessageResponse,
    MessageCreate,
    MessageUpdate,
    PrivateChatDetail,
    PrivateChatResponse,
    PrivateChatStart,
    PrivateMessageResponse,
    ShareToChatRequest,
    ShareToChatResponse,
)
from .comment import CommentCreate, CommentResponse, CommentTreeNode, CommentUpdate
from .group import GroupCreate, GroupDetail, GroupSummary, MemberAdd
from .post import PostCreate, PostResponse, PostUpdate, SharedPostResponse
from .user import UserSearchResult
from .vote import MyVoteResponse, VoteCreate, VoteResponse

__all__ = [
    "ChatMessageResponse", "MessageCreate", "MessageUpdate",
    "PrivateChatDetail", "PrivateChatResponse", "PrivateChatStart", "PrivateMessageResponse",
    "ShareToChatRequest", "ShareToChatResponse",
    "CommentCreate", "CommentResponse", "CommentTreeNode", "CommentUpdate",
    "GroupCreate", "GroupDetail", "GroupSummary", "MemberAdd",
    "PostCreate", "PostResponse", "PostUpdate", "SharedPostResponse",
    "UserSearchResult",
    "MyVoteResponse", "VoteCreate", "VoteResponse",
]
