"""User lookup for the add-member and start-chat pickers."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ozark_collab.models import User

SEARCH_LIMIT = 10


def search_users(db: Session, query: str | None, *, limit: int = SEARCH_LIMIT) -> list[User]:
    """Users whose username contains ``query``, ignoring case.

    A blank query matches nobody. ``%`` and ``_`` in the query match literally.
    """
    term = (query or "").strip().lower()
    if not term:
        return []
    return list(
        db.scalars(
            select(User)
            .where(func.lower(User.username).contains(term, autoescape=True))
            .order_by(User.username)
            .limit(limit)
        )
    )
