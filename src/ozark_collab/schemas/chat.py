# src/ozark_collab/schemas/chat.py
"""Chat message and private chat Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class MessageCreate(BaseModel):
    """Schema for a chat message. Text may be empty when an attachment is sent."""

    message: str | None = None
    attachment_url: str | None = None
    attachment_name: str | None = None
    attachment_content_type: str | None = None
    attachment_size: int = Field(0, ge=0)


class MessageUpdate(BaseModel):
    message: str


class ChatMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    group_id: int
    sender_id: int
    message: str
    attachment_url: str | None
    attachment_original_name: str | None
    attachment_content_type: str | None
    attachment_size: int
    is_deleted: bool
    sent_date: datetime
    last_edited_date: datetime | None


class PrivateChatStart(BaseModel):
    username: str


class PrivateChatResponse(BaseModel):
    id: int
    other_user_id: int
    other_username: str
    other_avatar: str | None
    last_activity_date: datetime
    unread_count: int = 0


class PrivateMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    private_chat_id: int
    sender_id: int
    message: str
    attachment_url: str | None
    is_deleted: bool
    sent_date: datetime
    last_edited_date: datetime | None


class PrivateChatDetail(PrivateChatResponse):
    messages: list[PrivateMessageResponse]


class ShareToChatRequest(BaseModel):
    """Send a post card into a group (``is_private`` false) or private chat."""

    post_id: int
    chat_id: int
    is_private: bool = False


class ShareToChatResponse(BaseModel):
    success: bool = True
    message_id: int
    chat_id: int
    is_private: bool
