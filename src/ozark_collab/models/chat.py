# src/ozark_collab/models/chat.py
"""SQLAlchemy models for group chats, their members and private chats."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ozark_collab.db.session import Base
from ozark_collab.db.time import utcnow

if TYPE_CHECKING:
    from .user import User

VIEW_MODE_LIST = "List"
VIEW_MODE_GRID = "Grid"


class ChatGroup(Base):
    """Group chat with a mutable owner.

    Exactly one row carries ``is_default``; it is created at bootstrap and can
    neither be left nor deleted.
    """

    __tablename__ = "chat_group"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_by_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    created_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Ownership transfers on leave; distinct from created_by_id.
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    group_photo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Bumped on every new message; drives chat list ordering.
    last_activity_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)


class ChatGroupMember(Base):
    """Membership of a user in a chat group."""

    __tablename__ = "chat_group_member"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_chat_group_member_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("chat_group.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    # Earliest joined member inherits ownership when the owner leaves.
    joined_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    view_mode: Mapped[str] = mapped_column(String(16), nullable=False, default=VIEW_MODE_LIST)

    user: Mapped[User] = relationship("User")


class ChatMessage(Base):
    """Message posted into a group chat."""

    __tablename__ = "chat_message"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("chat_group.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    attachment_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    attachment_original_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    attachment_content_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    attachment_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sent_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    last_edited_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    sender: Mapped[User] = relationship("User")


class PrivateChat(Base):
    """Two-party conversation.

    The pair is stored ordered (``user1_id < user2_id``) so the store holds at
    most one chat per pair of users.
    """

    __tablename__ = "private_chat"
    __table_args__ = (
        UniqueConstraint("user1_id", "user2_id", name="uq_private_chat_pair"),
        CheckConstraint("user1_id < user2_id", name="ck_private_chat_ordered"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user1_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    user2_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    last_activity_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    user1: Mapped[User] = relationship("User", foreign_keys=[user1_id])
    user2: Mapped[User] = relationship("User", foreign_keys=[user2_id])

    def other_participant(self, user_id: int) -> int:
        """Return the id of the participant that is not ``user_id``."""
        return self.user2_id if self.user1_id == user_id else self.user1_id

    def has_participant(self, user_id: int) -> bool:
        return user_id in (self.user1_id, self.user2_id)


class PrivateMessage(Base):
    """Message inside a private chat."""

    __tablename__ = "private_message"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    private_chat_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("private_chat.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    attachment_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sent_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    last_edited_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
