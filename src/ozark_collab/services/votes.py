"""Vote aggregation for posts and comments.

A user holds at most one vote per subject. Casting the same value again
removes it, casting the opposite value switches it. The subject's cached
``upvote_count``/``downvote_count`` move in the same transaction as the vote
row, so the returned score always equals the live vote rows.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ozark_collab.core.errors import NotFound, ValidationError
from ozark_collab.models import Post, PostComment, PostCommentVote, PostVote, User
from ozark_collab.models.vote import DOWNVOTE, UPVOTE
from ozark_collab.services import notifications
from ozark_collab.services.realtime import Broadcaster, RealtimeEvent, publish
from ozark_collab.services.transaction import unit_of_work

logger = logging.getLogger(__name__)


class VoteAction(str, Enum):
    INSERT = "insert"
    DELETE = "delete"
    SWITCH = "switch"


@dataclass(frozen=True)
class VoteTransition:
    """Store changes implied by one vote request."""

    action: VoteAction
    upvote_delta: int
    downvote_delta: int
    user_vote: int

    @property
    def is_new_upvote(self) -> bool:
        return self.action is VoteAction.INSERT and self.user_vote == UPVOTE


@dataclass(frozen=True)
class VoteResult:
    score: int
    user_vote: int


@dataclass(frozen=True)
class VoteTarget:
    """Describes one votable subject type and its vote table."""

    noun: str
    model: type[Post] | type[PostComment]
    vote_model: type[PostVote] | type[PostCommentVote]
    subject_column: str
    event: RealtimeEvent
    anchor: Callable[[int], str]

    def vote_key(self) -> Any:
        return getattr(self.vote_model, self.subject_column)


POST_VOTES = VoteTarget(
    noun="post",
    model=Post,
    vote_model=PostVote,
    subject_column="post_id",
    event=RealtimeEvent.VOTE_UPDATE,
    anchor=notifications.post_anchor,
)

COMMENT_VOTES = VoteTarget(
    noun="comment",
    model=PostComment,
    vote_model=PostCommentVote,
    subject_column="comment_id",
    event=RealtimeEvent.COMMENT_VOTE_UPDATE,
    anchor=notifications.comment_anchor,
)


def _counter_delta(value: int, sign: int) -> tuple[int, int]:
    if value == UPVOTE:
        return sign, 0
    return 0, sign


def plan_vote(existing: int | None, value: int) -> VoteTransition:
    """Compute the transition from the caller's current vote to ``value``.

    Args:
        existing: The stored vote value, or None when the caller is neutral.
        value: Requested vote, 1 or -1.

    Returns:
        The row action plus counter deltas and the caller's resulting vote.

    Raises:
        ValidationError: If ``value`` is not 1 or -1.
    """
    if value not in (UPVOTE, DOWNVOTE):
        raise ValidationError("Vote value must be 1 or -1")

    if existing is None:
        up, down = _counter_delta(value, 1)
        return VoteTransition(VoteAction.INSERT, up, down, value)

    if existing == value:
        up, down = _counter_delta(value, -1)
        return VoteTransition(VoteAction.DELETE, up, down, 0)

    old_up, old_down = _counter_delta(existing, -1)
    new_up, new_down = _counter_delta(value, 1)
    return VoteTransition(VoteAction.SWITCH, old_up + new_up, old_down + new_down, value)


class VoteAggregator:
    """Applies votes and keeps the cached counters consistent."""

    def __init__(self, db: Session, broadcaster: Broadcaster | None = None) -> None:
        self.db = db
        self.broadcaster = broadcaster

    async def apply_vote(
        self,
        target: VoteTarget,
        subject_id: int,
        voter: User,
        value: int,
    ) -> VoteResult:
        """Cast, toggle off or switch ``voter``'s vote on a subject."""
        if value not in (UPVOTE, DOWNVOTE):
            raise ValidationError("Vote value must be 1 or -1")

        with unit_of_work(self.db):
            subject = self.db.scalar(
                select(target.model).where(target.model.id == subject_id).with_for_update()
            )
            if subject is None:
                raise NotFound(f"{target.noun.capitalize()} not found")

            existing = self.db.scalar(
                select(target.vote_model).where(
                    target.vote_key() == subject_id,
                    target.vote_model.user_id == voter.id,
                )
            )
            transition = plan_vote(existing.value if existing is not None else None, value)

            if transition.action is VoteAction.INSERT:
                self.db.add(
                    target.vote_model(
                        **{target.subject_column: subject_id, "user_id": voter.id, "value": value}
                    )
                )
            elif transition.action is VoteAction.DELETE:
                self.db.delete(existing)
            else:
                existing.value = value

            subject.upvote_count += transition.upvote_delta
            subject.downvote_count += transition.downvote_delta
            result = VoteResult(score=subject.score, user_vote=transition.user_vote)

            if transition.is_new_upvote and subject.user_id != voter.id:
                self._notify_upvote(target, subject_id, owner_id=subject.user_id, voter=voter)

        await publish(
            self.broadcaster,
            target.event,
            {
                "subjectId": subject_id,
                "newScore": result.score,
                "userVote": result.user_vote,
                "userId": voter.id,
            },
        )
        return result

    def _notify_upvote(self, target: VoteTarget, subject_id: int, *, owner_id: int, voter: User) -> None:
        link = target.anchor(subject_id)
        # Best effort: two concurrent first upvotes may both pass this check.
        if notifications.recently_notified(
            self.db,
            recipient_id=owner_id,
            sender_id=voter.id,
            title=notifications.TITLE_NEW_UPVOTE,
            action_url=link,
        ):
            logger.debug("Skipping duplicate upvote notification for %s", link)
            return
        notifications.notify(
            self.db,
            recipient_id=owner_id,
            sender_id=voter.id,
            title=notifications.TITLE_NEW_UPVOTE,
            message=f"{voter.label} upvoted your {target.noun}.",
            action_url=link,
        )

    def get_user_vote(self, target: VoteTarget, subject_id: int, user_id: int) -> int:
        """Return the caller's vote on a subject: 1, -1 or 0 when neutral."""
        value = self.db.scalar(
            select(target.vote_model.value).where(
                target.vote_key() == subject_id,
                target.vote_model.user_id == user_id,
            )
        )
        return int(value) if value is not None else 0

    def user_votes(self, target: VoteTarget, subject_ids: list[int], user_id: int) -> dict[int, int]:
        """Map each subject id the caller voted on to the vote value."""
        if not subject_ids:
            return {}
        key = target.vote_key()
        rows = self.db.execute(
            select(key, target.vote_model.value).where(
                key.in_(subject_ids),
                target.vote_model.user_id == user_id,
            )
        ).all()
        return {subject_id: int(value) for subject_id, value in rows}
