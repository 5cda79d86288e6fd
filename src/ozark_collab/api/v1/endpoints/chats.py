# src/ozark_collab/api/v1/endpoints/chats.py
"""Private (two-party) chat endpoints."""

from fastapi import APIRouter, Request, Response, status

from ozark_collab.models import PrivateChat, User
from ozark_collab.schemas.chat import (
    MessageCreate,
    MessageUpdate,
    PrivateChatDetail,
    PrivateChatResponse,
    PrivateChatStart,
    PrivateMessageResponse,
    ShareToChatRequest,
    ShareToChatResponse,
)
from ozark_collab.services.chat import ChatService

from ..dependencies import BroadcasterDep, CurrentUserDep, SessionDep

router = APIRouter(prefix="/chats", tags=["chats"])


def _chat_fields(chat: PrivateChat, viewer: User) -> dict[str, object]:
    other = chat.user2 if chat.user1_id == viewer.id else chat.user1
    return {
        "id": chat.id,
        "other_user_id": other.id,
        "other_username": other.username,
        "other_avatar": other.avatar_url,
        "last_activity_date": chat.last_activity_date,
    }


@router.get("/private", response_model=list[PrivateChatResponse])
async def list_private_chats(
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[PrivateChatResponse]:
    """The caller's private chats, most recent first."""
    chats = ChatService(db).list_private_chats(current_user)
    return [
        PrivateChatResponse(**_chat_fields(chat, current_user), unread_count=unread)
        for chat, unread in chats
    ]


@router.post("/private", response_model=PrivateChatResponse)
async def start_private_chat(
    chat_data: PrivateChatStart,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PrivateChatResponse:
    """Open (or reuse) the private chat with another user."""
    chat = ChatService(db).start_private_chat(current_user, chat_data.username)
    return PrivateChatResponse(**_chat_fields(chat, current_user))


@router.get("/private/{chat_id}", response_model=PrivateChatDetail)
async def get_private_chat(
    chat_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PrivateChatDetail:
    chat, messages = ChatService(db).open_private_chat(chat_id, current_user)
    return PrivateChatDetail(
        **_chat_fields(chat, current_user),
        messages=[PrivateMessageResponse.model_validate(m) for m in messages],
    )


@router.post(
    "/private/{chat_id}/messages",
    response_model=PrivateMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_private_message(
    chat_id: int,
    message_data: MessageCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    broadcaster: BroadcasterDep,
) -> PrivateMessageResponse:
    message = await ChatService(db, broadcaster).post_private_message(
        chat_id,
        current_user,
        message_data.message,
        attachment_url=message_data.attachment_url,
    )
    return PrivateMessageResponse.model_validate(message)


@router.put("/private/messages/{message_id}", response_model=PrivateMessageResponse)
async def edit_private_message(
    message_id: int,
    message_data: MessageUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PrivateMessageResponse:
    message = ChatService(db).edit_private_message(
        message_id, current_user, message_data.message
    )
    return PrivateMessageResponse.model_validate(message)


@router.delete("/private/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_private_message(
    message_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    ChatService(db).delete_private_message(message_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/share", response_model=ShareToChatResponse, status_code=status.HTTP_201_CREATED)
async def share_to_chat(
    share_data: ShareToChatRequest,
    request: Request,
    current_user: CurrentUserDep,
    db: SessionDep,
    broadcaster: BroadcasterDep,
) -> ShareToChatResponse:
    """Send a post card into one of the caller's group or private chats."""
    message = await ChatService(db, broadcaster).share_to_chat(
        share_data.post_id,
        share_data.chat_id,
        current_user,
        is_private=share_data.is_private,
        base_url=str(request.base_url),
    )
    return ShareToChatResponse(
        message_id=message.id,
        chat_id=share_data.chat_id,
        is_private=share_data.is_private,
    )
