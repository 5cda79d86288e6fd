# src/ozark_collab/models/post.py
"""SQLAlchemy models for feed posts."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ozark_collab.db.session import Base
from ozark_collab.db.time import utcnow

if TYPE_CHECKING:
    from .user import User


class Post(Base):
    """Feed entry produced by a user.

    ``upvote_count``/``downvote_count`` cache the number of live vote rows and
    are maintained by the vote aggregator, never recomputed on read.
    """

    __tablename__ = "post"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        nullable=False,
        index=True,
    )
    content: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    attachment_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    upvote_count: Mapped[int] = mapped_column(default=0, nullable=False)
    downvote_count: Mapped[int] = mapped_column(default=0, nullable=False)

    user: Mapped[User] = relationship("User")

    @property
    def score(self) -> int:
        """Net score shown next to the post."""
        return self.upvote_count - self.downvote_count


class SharedPost(Base):
    """A post re-shared by a user onto their own feed; once per user and post."""

    __tablename__ = "shared_post"
    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_shared_post_user_post"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    shared_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    post: Mapped[Post] = relationship("Post")
