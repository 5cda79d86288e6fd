"""Startup seeding of the organization-wide default group."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from ozark_collab.core.settings import settings
from ozark_collab.db.time import utcnow
from ozark_collab.models import ChatGroup, ChatGroupMember, User
from ozark_collab.models.user import ROLE_ADMIN
from ozark_collab.services.transaction import unit_of_work

logger = logging.getLogger(__name__)


def _ensure_admin(db: Session) -> User:
    admin = db.scalar(select(User).where(User.role == ROLE_ADMIN).order_by(User.id))
    if admin is not None:
        return admin
    admin = db.scalar(select(User).where(User.username == settings.bootstrap_admin_username))
    if admin is None:
        admin = User(username=settings.bootstrap_admin_username, role=ROLE_ADMIN)
        db.add(admin)
        logger.info("Seeded administrator account '%s'", admin.username)
    else:
        admin.role = ROLE_ADMIN
    db.flush()
    return admin


def ensure_default_group(db: Session) -> ChatGroup:
    """Return the default group, creating it with the administrator as owner.

    Safe to call on every startup.
    """
    with unit_of_work(db):
        group = db.scalar(select(ChatGroup).where(ChatGroup.is_default.is_(True)).order_by(ChatGroup.id))
        if group is None:
            admin = _ensure_admin(db)
            now = utcnow()
            group = ChatGroup(
                name=settings.default_group_name,
                description=settings.default_group_description,
                created_by_id=admin.id,
                owner_id=admin.id,
                is_default=True,
                created_date=now,
                last_activity_date=now,
            )
            db.add(group)
            db.flush()
            db.add(ChatGroupMember(group_id=group.id, user_id=admin.id, joined_date=now))
            logger.info("Created default group '%s'", group.name)
    return group
