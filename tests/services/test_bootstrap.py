# tests/services/test_bootstrap.py
from __future__ import annotations

from sqlalchemy import select

from ozark_collab.models import ChatGroup, ChatGroupMember, User
from ozark_collab.services.bootstrap import ensure_default_group


def test_default_group_is_created_once(db_session) -> None:
    first = ensure_default_group(db_session)
    second = ensure_default_group(db_session)

    assert first.id == second.id
    assert first.is_default is True
    assert first.name == "Main Organization Chat"
    admin = db_session.get(User, first.owner_id)
    assert admin is not None and admin.is_admin
    members = db_session.scalars(select(ChatGroupMember.user_id).where(ChatGroupMember.group_id == first.id)).all()
    assert members == [admin.id]
    assert len(db_session.scalars(select(ChatGroup)).all()) == 1


def test_existing_admin_owns_the_default_group(db_session, admin, alice) -> None:
    group = ensure_default_group(db_session)

    assert group.owner_id == admin.id
    assert db_session.scalars(select(User).order_by(User.id)).all() == [admin, alice]


def test_named_account_is_promoted(db_session, make_user) -> None:
    existing = make_user("admin")

    group = ensure_default_group(db_session)

    assert group.owner_id == existing.id
    db_session.refresh(existing)
    assert existing.is_admin
