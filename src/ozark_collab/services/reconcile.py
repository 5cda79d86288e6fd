"""Offline repair of cached vote counters.

Counters are maintained incrementally on the hot path; this recomputes them
from the vote rows for data written before that was the case or after manual
edits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from ozark_collab.models.vote import DOWNVOTE, UPVOTE
from ozark_collab.services.votes import COMMENT_VOTES, POST_VOTES, VoteTarget

logger = logging.getLogger(__name__)


@dataclass
class ReconcileReport:
    posts_fixed: int = 0
    comments_fixed: int = 0

    @property
    def total(self) -> int:
        return self.posts_fixed + self.comments_fixed


def _reconcile_target(db: Session, target: VoteTarget, *, dry_run: bool) -> int:
    key = target.vote_key()
    value = target.vote_model.value
    tallies = {
        subject_id: (int(ups or 0), int(downs or 0))
        for subject_id, ups, downs in db.execute(
            select(
                key,
                func.sum(case((value == UPVOTE, 1), else_=0)),
                func.sum(case((value == DOWNVOTE, 1), else_=0)),
            ).group_by(key)
        )
    }

    fixed = 0
    for subject in db.scalars(select(target.model)):
        ups, downs = tallies.get(subject.id, (0, 0))
        if subject.upvote_count == ups and subject.downvote_count == downs:
            continue
        logger.info(
            "%s %d drifted: cached %d/%d, actual %d/%d",
            target.noun,
            subject.id,
            subject.upvote_count,
            subject.downvote_count,
            ups,
            downs,
        )
        fixed += 1
        if not dry_run:
            subject.upvote_count = ups
            subject.downvote_count = downs
    return fixed


def reconcile_vote_counts(db: Session, *, dry_run: bool = False) -> ReconcileReport:
    """Recompute post and comment counters from their vote rows.

    Args:
        db: Open session; committed unless ``dry_run``.
        dry_run: Only report drifted rows.
    """
    report = ReconcileReport(
        posts_fixed=_reconcile_target(db, POST_VOTES, dry_run=dry_run),
        comments_fixed=_reconcile_target(db, COMMENT_VOTES, dry_run=dry_run),
    )
    if dry_run:
        db.rollback()
    else:
        db.commit()
    return report
