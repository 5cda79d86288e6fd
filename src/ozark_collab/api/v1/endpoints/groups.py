# src/ozark_collab/api/v1/endpoints/groups.py
"""Group chat endpoints: membership, ownership and messages."""

from fastapi import APIRouter, Response, status

from ozark_collab.models import ChatGroup, User
from ozark_collab.schemas.chat import ChatMessageResponse, MessageCreate, MessageUpdate
from ozark_collab.schemas.group import (
    GroupCreate,
    GroupDetail,
    GroupPhotoUpdate,
    GroupSummary,
    LeaveResponse,
    MemberAdd,
    MemberResponse,
    ViewModeUpdate,
)
from ozark_collab.services.chat import ChatService
from ozark_collab.services.groups import GroupService

from ..dependencies import BroadcasterDep, CurrentUserDep, SessionDep

router = APIRouter(prefix="/groups", tags=["groups"])


def _summary_fields(group: ChatGroup) -> dict[str, object]:
    return {
        "id": group.id,
        "name": group.name,
        "description": group.description,
        "photo_url": group.group_photo_url,
        "owner_id": group.owner_id,
        "is_default": group.is_default,
        "last_activity_date": group.last_activity_date,
    }


def _group_detail(chat: ChatService, group: ChatGroup, viewer: User) -> GroupDetail:
    members = chat.groups.members_of(group.id)
    mine = next((m for m in members if m.user_id == viewer.id), None)
    return GroupDetail(
        **_summary_fields(group),
        created_by_id=group.created_by_id,
        view_mode=mine.view_mode if mine is not None else None,
        members=[
            MemberResponse(
                user_id=m.user_id,
                username=m.user.username,
                display_name=m.user.display_name,
                avatar=m.user.avatar_url,
                joined_date=m.joined_date,
                is_owner=m.user_id == group.owner_id,
            )
            for m in members
        ],
        messages=[ChatMessageResponse.model_validate(m) for m in chat.group_messages(group.id)],
    )


@router.get("/", response_model=list[GroupSummary])
async def list_groups(current_user: CurrentUserDep, db: SessionDep) -> list[GroupSummary]:
    """Groups the caller belongs to, most recently active first."""
    return [
        GroupSummary(**_summary_fields(group), unread_count=unread)
        for group, unread in GroupService(db).list_groups(current_user)
    ]


@router.post("/", response_model=GroupDetail, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_data: GroupCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> GroupDetail:
    """Create a group owned by the caller."""
    chat = ChatService(db)
    group = chat.groups.create_group(
        current_user,
        group_data.name,
        description=group_data.description,
        photo_url=group_data.photo_url,
    )
    return _group_detail(chat, group, current_user)


@router.put("/messages/{message_id}", response_model=ChatMessageResponse)
async def edit_message(
    message_id: int,
    message_data: MessageUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ChatMessageResponse:
    """Edit the caller's own group message."""
    message = ChatService(db).edit_message(message_id, current_user, message_data.message)
    return ChatMessageResponse.model_validate(message)


@router.delete("/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    message_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    """Soft delete a group message."""
    ChatService(db).delete_message(message_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{group_id}", response_model=GroupDetail)
async def get_group(
    group_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> GroupDetail:
    """Open a group: members, messages and the caller's view mode."""
    chat = ChatService(db)
    group = chat.groups.open_group(group_id, current_user)
    return _group_detail(chat, group, current_user)


@router.post("/{group_id}/members", response_model=GroupDetail)
async def add_member(
    group_id: int,
    member_data: MemberAdd,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> GroupDetail:
    """Add a user to the group by username."""
    chat = ChatService(db)
    group = chat.groups.add_member(group_id, current_user, member_data.username)
    return _group_detail(chat, group, current_user)


@router.delete("/{group_id}/members/{member_id}", response_model=GroupDetail)
async def remove_member(
    group_id: int,
    member_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> GroupDetail:
    """Remove a member (by user id) other than the owner."""
    chat = ChatService(db)
    group = chat.groups.remove_member(group_id, current_user, member_id)
    return _group_detail(chat, group, current_user)


@router.post("/{group_id}/leave", response_model=LeaveResponse)
async def leave_group(group_id: int, current_user: CurrentUserDep, db: SessionDep) -> LeaveResponse:
    """Leave a group; an owner hands the group to the earliest-joined member."""
    outcome = GroupService(db).leave_group(group_id, current_user)
    return LeaveResponse(status=outcome.value)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(group_id: int, current_user: CurrentUserDep, db: SessionDep) -> Response:
    """Delete a group with its members and messages."""
    GroupService(db).delete_group(group_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{group_id}/photo", response_model=GroupDetail)
async def update_photo(
    group_id: int,
    photo_data: GroupPhotoUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> GroupDetail:
    chat = ChatService(db)
    group = chat.groups.update_photo(group_id, current_user, photo_data.photo_url)
    return _group_detail(chat, group, current_user)


@router.put("/{group_id}/view-mode", response_model=GroupDetail)
async def set_view_mode(
    group_id: int,
    view_data: ViewModeUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> GroupDetail:
    chat = ChatService(db)
    chat.groups.set_view_mode(group_id, current_user, view_data.view_mode)
    return _group_detail(chat, chat.groups.get_group(group_id), current_user)


@router.post(
    "/{group_id}/messages",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    group_id: int,
    message_data: MessageCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    broadcaster: BroadcasterDep,
) -> ChatMessageResponse:
    """Post a message into a group and notify the other members."""
    message = await ChatService(db, broadcaster).post_message(
        group_id,
        current_user,
        message_data.message,
        attachment_url=message_data.attachment_url,
        attachment_name=message_data.attachment_name,
        attachment_content_type=message_data.attachment_content_type,
        attachment_size=message_data.attachment_size,
    )
    return ChatMessageResponse.model_validate(message)
