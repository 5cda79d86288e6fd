# src/ozark_collab/schemas/group.py
"""Chat group Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .chat import ChatMessageResponse


class GroupCreate(BaseModel):
    """Schema for creating a new group chat."""

    name: str
    description: str | None = None
    photo_url: str | None = None


class MemberAdd(BaseModel):
    username: str


class GroupPhotoUpdate(BaseModel):
    photo_url: str | None = None


class ViewModeUpdate(BaseModel):
    view_mode: Literal["List", "Grid"]


class MemberResponse(BaseModel):
    user_id: int
    username: str
    display_name: str | None
    avatar: str | None
    joined_date: datetime
    is_owner: bool


class GroupSummary(BaseModel):
    """Entry of the caller's chat list."""

    id: int
    name: str
    description: str
    photo_url: str | None
    owner_id: int
    is_default: bool
    last_activity_date: datetime
    unread_count: int = 0


class GroupDetail(GroupSummary):
    """Group with its members and messages as seen by the caller."""

    created_by_id: int
    view_mode: str | None = Field(None, description="Caller's view mode, None for non-members")
    members: list[MemberResponse]
    messages: list[ChatMessageResponse]


class LeaveResponse(BaseModel):
    status: Literal["left", "ownership_transferred", "dissolved"]
