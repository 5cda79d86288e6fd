# src/ozark_collab/schemas/comment.py
"""Comment-related Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    """Schema for adding a comment or a reply."""

    post_id: int
    content: str
    parent_comment_id: int | None = Field(None, description="Parent comment id for replies")


class CommentUpdate(BaseModel):
    content: str


class CommentResponse(BaseModel):
    """Comment with denormalized author details."""

    id: int
    post_id: int
    parent_id: int | None
    content: str
    user: str
    avatar: str | None
    date: str = Field(..., description="Creation time formatted as 'Mon DD HH:MM'")
    upvote_count: int = 0
    downvote_count: int = 0
    score: int = 0


class CommentTreeNode(CommentResponse):
    replies: list[CommentTreeNode] = Field(default_factory=list)


class CommentEditResponse(BaseModel):
    success: bool
    content: str


class CommentDeleteResponse(BaseModel):
    success: bool
    removed_ids: list[int]
