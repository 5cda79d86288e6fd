"""Group and private chat messages."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ozark_collab.core.errors import ConflictOrTransient, Forbidden, NotFound, ValidationError
from ozark_collab.db.time import as_utc, utcnow
from ozark_collab.models import ChatGroupMember, ChatMessage, Post, PrivateChat, PrivateMessage, User
from ozark_collab.services import notifications
from ozark_collab.services.groups import GroupService
from ozark_collab.services.realtime import Broadcaster, RealtimeEvent, publish
from ozark_collab.services.transaction import unit_of_work

logger = logging.getLogger(__name__)

POST_SHARE_MARKER = "[POST_SHARE]"
POST_SHARE_PREVIEW_LENGTH = 100


def _require_body(message: str | None, attachment_url: str | None) -> str:
    text = (message or "").strip()
    if not text and not attachment_url:
        raise ValidationError("Message cannot be empty")
    return text


def chat_update_payload(chat_id: int, is_private: bool, timestamp: datetime) -> dict[str, Any]:
    return {
        "chatId": chat_id,
        "isPrivate": is_private,
        "timestamp": as_utc(timestamp).isoformat(),
    }


def post_share_body(author: str, post_id: int, content: str | None, link: str) -> str:
    """Build the ``[POST_SHARE]`` card clients render as a post preview.

    Fields are ``|``-separated: marker, post author, post id, content preview
    and the link back to the post. Content longer than the preview keeps its
    first ``limit - 3`` characters followed by an ellipsis.
    """
    preview = content or ""
    if len(preview) > POST_SHARE_PREVIEW_LENGTH:
        preview = preview[: POST_SHARE_PREVIEW_LENGTH - 3] + "..."
    return "|".join([POST_SHARE_MARKER, author, str(post_id), preview, link])


class ChatService:
    """Posts, edits and deletes chat messages and keeps chat lists ordered."""

    def __init__(self, db: Session, broadcaster: Broadcaster | None = None) -> None:
        self.db = db
        self.broadcaster = broadcaster
        self.groups = GroupService(db)

    # Group messages

    def group_messages(self, group_id: int) -> list[ChatMessage]:
        return list(
            self.db.scalars(
                select(ChatMessage)
                .where(ChatMessage.group_id == group_id)
                .order_by(ChatMessage.sent_date, ChatMessage.id)
            )
        )

    def _other_members(self, group_id: int, user_id: int) -> list[int]:
        return list(
            self.db.scalars(
                select(ChatGroupMember.user_id).where(
                    ChatGroupMember.group_id == group_id,
                    ChatGroupMember.user_id != user_id,
                )
            )
        )

    async def post_message(
        self,
        group_id: int,
        sender: User,
        message: str | None,
        attachment_url: str | None = None,
        attachment_name: str | None = None,
        attachment_content_type: str | None = None,
        attachment_size: int = 0,
    ) -> ChatMessage:
        text = _require_body(message, attachment_url)

        with unit_of_work(self.db):
            group = self.groups.get_group(group_id)
            if self.groups.membership(group_id, sender.id) is None and not sender.is_admin:
                raise Forbidden("Only members can post in this group")

            now = utcnow()
            chat_message = ChatMessage(
                group_id=group_id,
                sender_id=sender.id,
                message=text,
                attachment_url=attachment_url,
                attachment_original_name=attachment_name,
                attachment_content_type=attachment_content_type,
                attachment_size=attachment_size,
                sent_date=now,
            )
            self.db.add(chat_message)
            group.last_activity_date = now

            recipients = self._other_members(group_id, sender.id)
            preview = notifications.message_preview(text)
            for recipient_id in recipients:
                notifications.notify(
                    self.db,
                    recipient_id=recipient_id,
                    sender_id=sender.id,
                    title=f"New Message in {group.name}",
                    message=preview,
                    action_url=notifications.group_link(group_id),
                )

        await publish(
            self.broadcaster,
            RealtimeEvent.CHAT_UPDATE,
            chat_update_payload(group_id, False, now),
        )
        return chat_message

    def edit_message(self, message_id: int, editor: User, content: str | None) -> ChatMessage:
        text = (content or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty")
        with unit_of_work(self.db):
            chat_message = self.db.get(ChatMessage, message_id)
            if chat_message is None or chat_message.is_deleted:
                raise NotFound("Message not found")
            if chat_message.sender_id != editor.id:
                raise Forbidden("Only the sender can edit this message")
            chat_message.message = text
            chat_message.last_edited_date = utcnow()
        return chat_message

    def delete_message(self, message_id: int, caller: User) -> ChatMessage:
        """Soft delete: the row stays as a placeholder with its content cleared."""
        with unit_of_work(self.db):
            chat_message = self.db.get(ChatMessage, message_id)
            if chat_message is None:
                raise NotFound("Message not found")
            if chat_message.sender_id != caller.id and not caller.is_admin:
                raise Forbidden("Only the sender or an administrator can delete this message")
            chat_message.is_deleted = True
            chat_message.message = ""
            chat_message.attachment_url = None
        return chat_message

    # Private chats

    def _pair(self, user1_id: int, user2_id: int) -> PrivateChat | None:
        return self.db.scalar(
            select(PrivateChat).where(PrivateChat.user1_id == user1_id, PrivateChat.user2_id == user2_id)
        )

    def start_private_chat(self, starter: User, username: str) -> PrivateChat:
        """Return the chat between ``starter`` and ``username``, creating it once."""
        target = self.db.scalar(select(User).where(User.username == username.strip()))
        if target is None:
            raise NotFound(f"User '{username}' not found")
        if target.id == starter.id:
            raise ValidationError("You cannot start a private chat with yourself")

        user1_id, user2_id = sorted((starter.id, target.id))
        chat = self._pair(user1_id, user2_id)
        if chat is not None:
            return chat

        try:
            with unit_of_work(self.db):
                chat = PrivateChat(user1_id=user1_id, user2_id=user2_id, last_activity_date=utcnow())
                self.db.add(chat)
        except ConflictOrTransient:
            # A concurrent start created the pair first.
            chat = self._pair(user1_id, user2_id)
            if chat is None:
                raise
            return chat

        logger.info("Private chat opened between %d and %d", starter.id, target.id)
        return chat

    def _require_participant(self, chat_id: int, user: User) -> PrivateChat:
        chat = self.db.get(PrivateChat, chat_id)
        if chat is None:
            raise NotFound("Private chat not found")
        if not chat.has_participant(user.id) and not user.is_admin:
            raise Forbidden("You are not part of this conversation")
        return chat

    def open_private_chat(self, chat_id: int, viewer: User) -> tuple[PrivateChat, list[PrivateMessage]]:
        """Load a private chat with its messages and clear the viewer's unread badge."""
        with unit_of_work(self.db):
            chat = self._require_participant(chat_id, viewer)
            notifications.mark_read(
                self.db,
                recipient_id=viewer.id,
                action_url=notifications.private_chat_link(chat_id),
            )
        messages = list(
            self.db.scalars(
                select(PrivateMessage)
                .where(PrivateMessage.private_chat_id == chat_id)
                .order_by(PrivateMessage.sent_date, PrivateMessage.id)
            )
        )
        return chat, messages

    def list_private_chats(self, user: User) -> list[tuple[PrivateChat, int]]:
        chats = list(
            self.db.scalars(
                select(PrivateChat)
                .where(or_(PrivateChat.user1_id == user.id, PrivateChat.user2_id == user.id))
                .order_by(PrivateChat.last_activity_date.desc(), PrivateChat.id.desc())
            )
        )
        counts = notifications.unread_counts(
            self.db,
            recipient_id=user.id,
            action_urls=[notifications.private_chat_link(c.id) for c in chats],
        )
        return [(c, counts.get(notifications.private_chat_link(c.id), 0)) for c in chats]

    async def post_private_message(
        self,
        chat_id: int,
        sender: User,
        message: str | None,
        attachment_url: str | None = None,
    ) -> PrivateMessage:
        text = _require_body(message, attachment_url)

        with unit_of_work(self.db):
            chat = self._require_participant(chat_id, sender)
            now = utcnow()
            private_message = PrivateMessage(
                private_chat_id=chat_id,
                sender_id=sender.id,
                message=text,
                attachment_url=attachment_url,
                sent_date=now,
            )
            self.db.add(private_message)
            chat.last_activity_date = now

            recipient_id = chat.other_participant(sender.id)
            if recipient_id != sender.id:
                notifications.notify(
                    self.db,
                    recipient_id=recipient_id,
                    sender_id=sender.id,
                    title=f"Private Message from {sender.username}",
                    message=notifications.message_preview(text),
                    action_url=notifications.private_chat_link(chat_id),
                )

        await publish(
            self.broadcaster,
            RealtimeEvent.CHAT_UPDATE,
            chat_update_payload(chat_id, True, now),
        )
        return private_message

    def edit_private_message(self, message_id: int, editor: User, content: str | None) -> PrivateMessage:
        text = (content or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty")
        with unit_of_work(self.db):
            private_message = self.db.get(PrivateMessage, message_id)
            if private_message is None or private_message.is_deleted:
                raise NotFound("Message not found")
            if private_message.sender_id != editor.id:
                raise Forbidden("Only the sender can edit this message")
            private_message.message = text
            private_message.last_edited_date = utcnow()
        return private_message

    def delete_private_message(self, message_id: int, caller: User) -> PrivateMessage:
        with unit_of_work(self.db):
            private_message = self.db.get(PrivateMessage, message_id)
            if private_message is None:
                raise NotFound("Message not found")
            if private_message.sender_id != caller.id and not caller.is_admin:
                raise Forbidden("Only the sender or an administrator can delete this message")
            private_message.is_deleted = True
            private_message.message = ""
            private_message.attachment_url = None
        return private_message

    # Sharing

    async def share_to_chat(
        self,
        post_id: int,
        chat_id: int,
        sharer: User,
        *,
        is_private: bool,
        base_url: str = "",
    ) -> ChatMessage | PrivateMessage:
        """Send a post card into a group or private chat the sharer belongs to.

        The other members (or the other participant) get a notification and
        the chat moves to the top of everyone's list.

        Raises:
            NotFound: If the post or the chat does not exist.
            Forbidden: If the sharer is not in the chat.
        """
        post = self.db.get(Post, post_id)
        if post is None:
            raise NotFound("Post not found")
        link = base_url.rstrip("/") + notifications.post_anchor(post_id)
        body = post_share_body(post.user.username, post_id, post.content, link)

        with unit_of_work(self.db):
            now = utcnow()
            shared: ChatMessage | PrivateMessage
            if is_private:
                chat = self._require_participant(chat_id, sharer)
                shared = PrivateMessage(private_chat_id=chat_id, sender_id=sharer.id, message=body, sent_date=now)
                chat.last_activity_date = now
                recipient_id = chat.other_participant(sharer.id)
                if recipient_id != sharer.id:
                    notifications.notify(
                        self.db,
                        recipient_id=recipient_id,
                        sender_id=sharer.id,
                        title=notifications.TITLE_POST_SHARED_PRIVATELY,
                        message="Sent a post link in your private chat",
                        action_url=notifications.private_chat_link(chat_id),
                    )
            else:
                group = self.groups.get_group(chat_id)
                if self.groups.membership(chat_id, sharer.id) is None and not sharer.is_admin:
                    raise Forbidden("Only members can post in this group")
                shared = ChatMessage(group_id=chat_id, sender_id=sharer.id, message=body, sent_date=now)
                group.last_activity_date = now
                for recipient_id in self._other_members(chat_id, sharer.id):
                    notifications.notify(
                        self.db,
                        recipient_id=recipient_id,
                        sender_id=sharer.id,
                        title=f"Post shared in {group.name}",
                        message="Shared a post link in the group",
                        action_url=notifications.group_link(chat_id),
                    )
            self.db.add(shared)

        logger.info(
            "Post %d shared into %s chat %d by user %d",
            post_id,
            "private" if is_private else "group",
            chat_id,
            sharer.id,
        )
        await publish(
            self.broadcaster,
            RealtimeEvent.CHAT_UPDATE,
            chat_update_payload(chat_id, is_private, now),
        )
        return shared
