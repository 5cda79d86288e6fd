# src/ozark_collab/schemas/post.py
"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class PostCreate(BaseModel):
    """Schema for creating a new post. At least one field must be set."""

    content: str | None = Field(None, description="Post text")
    image_url: str | None = Field(None, description="URL of an uploaded image")
    attachment_url: str | None = Field(None, description="URL of an uploaded document")


class PostUpdate(BaseModel):
    """Schema for editing the text of a post."""

    content: str = Field(..., description="New post text")


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    user_id: int
    author: str
    avatar: str | None
    content: str | None
    image_url: str | None
    attachment_url: str | None
    created_at: datetime
    upvote_count: int
    downvote_count: int
    score: int
    comment_count: int = Field(0, description="Number of top-level comments")
    user_vote: int = Field(0, description="Caller's vote: 1, -1 or 0")


class SharedPostResponse(BaseModel):
    """A feed share of a post."""

    id: int
    post_id: int
    user_id: int
    shared_at: datetime
