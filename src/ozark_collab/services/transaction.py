"""Transaction scope shared by the mutating collaboration services."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ozark_collab.core.errors import CollabError, ConflictOrTransient

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """Commit ``db`` when the block succeeds, roll it back otherwise.

    Domain errors propagate unchanged. Store errors (lock timeouts, integrity
    violations from a concurrent duplicate vote) surface as
    :class:`ConflictOrTransient` so the caller can retry.
    """
    try:
        yield db
        db.commit()
    except CollabError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Rolled back collaboration transaction: %s", exc)
        raise ConflictOrTransient() from exc
