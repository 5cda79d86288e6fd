# src/ozark_collab/models/comment.py
"""SQLAlchemy model for post comments and their replies."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ozark_collab.db.session import Base
from ozark_collab.db.time import utcnow

if TYPE_CHECKING:
    from .user import User


class PostComment(Base):
    """Comment on a post; replies point at their parent comment."""

    __tablename__ = "post_comment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("user_account.id"), nullable=False)
    content: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Top-level comments have parent_comment_id = NULL.
    parent_comment_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("post_comment.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    upvote_count: Mapped[int] = mapped_column(default=0, nullable=False)
    downvote_count: Mapped[int] = mapped_column(default=0, nullable=False)

    user: Mapped[User] = relationship("User")

    @property
    def score(self) -> int:
        """Net score shown next to the comment."""
        return self.upvote_count - self.downvote_count
