# src/ozark_collab/models/notification.py
"""Notification rows appended by collaboration actions."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ozark_collab.db.session import Base
from ozark_collab.db.time import utcnow


class Notification(Base):
    """Message addressed to a user; reading and deleting live elsewhere."""

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_recipient_sender", "recipient_id", "sender_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")

    sender_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        nullable=True,
    )
    # NULL recipient = broadcast to everyone.
    recipient_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        nullable=True,
    )

    sent_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # e.g. /Collaboration/Details/5 or /Collaboration#post-3
    action_url: Mapped[str | None] = mapped_column(Text, nullable=True)
