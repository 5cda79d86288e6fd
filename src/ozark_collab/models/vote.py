# src/ozark_collab/models/vote.py
"""Models capturing voting interactions on posts and comments."""

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, SmallInteger
from sqlalchemy.orm import Mapped, mapped_column

from ozark_collab.db.session import Base

UPVOTE = 1
DOWNVOTE = -1


class PostVote(Base):
    """Per-user vote on a post. Absence of a row means neutral."""

    __tablename__ = "post_vote"
    __table_args__ = (
        CheckConstraint("value IN (1, -1)", name="ck_post_vote_value"),
        Index("ix_post_vote_post_id", "post_id"),
    )

    # Composite primary key prevents duplicate votes from the same user.
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        primary_key=True,
    )

    # 1 = upvote, -1 = downvote.
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)


class PostCommentVote(Base):
    """Per-user vote on a comment."""

    __tablename__ = "post_comment_vote"
    __table_args__ = (
        CheckConstraint("value IN (1, -1)", name="ck_post_comment_vote_value"),
        Index("ix_post_comment_vote_comment_id", "comment_id"),
    )

    comment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post_comment.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id"),
        primary_key=True,
    )
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)
