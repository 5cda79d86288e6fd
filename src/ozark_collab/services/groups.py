"""Group membership and ownership rules.

A live group always has exactly one owner and the owner is a current member.
Ownership moves only when the owner leaves: the earliest-joined remaining
member inherits it, and a group nobody is left in is deleted. The default
organization group can be neither left nor deleted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ozark_collab.core.errors import Forbidden, NotFound, ValidationError
from ozark_collab.core.settings import settings
from ozark_collab.db.time import as_utc, utcnow
from ozark_collab.models import ChatGroup, ChatGroupMember, ChatMessage, User
from ozark_collab.models.chat import VIEW_MODE_GRID, VIEW_MODE_LIST
from ozark_collab.services import notifications
from ozark_collab.services.transaction import unit_of_work

logger = logging.getLogger(__name__)

VIEW_MODES = (VIEW_MODE_LIST, VIEW_MODE_GRID)


@dataclass(frozen=True)
class MemberSnapshot:
    member_id: int
    user_id: int
    joined_date: datetime


@dataclass(frozen=True)
class GroupSnapshot:
    """Membership state of a group at one point in a transaction."""

    group_id: int
    owner_id: int
    members: tuple[MemberSnapshot, ...]

    @classmethod
    def of(cls, group: ChatGroup, members: list[ChatGroupMember]) -> GroupSnapshot:
        return cls(
            group_id=group.id,
            owner_id=group.owner_id,
            members=tuple(
                MemberSnapshot(m.id, m.user_id, as_utc(m.joined_date)) for m in members
            ),
        )


def transfer_ownership(snapshot: GroupSnapshot, departing_user_id: int) -> GroupSnapshot | None:
    """Return the group state after ``departing_user_id`` leaves.

    The departing member is removed. If they owned the group, the remaining
    member with the earliest ``joined_date`` becomes owner; equal join times
    fall back to the lower membership id. ``None`` means nobody is left and
    the group has to be dissolved.
    """
    remaining = tuple(m for m in snapshot.members if m.user_id != departing_user_id)
    if snapshot.owner_id != departing_user_id:
        return replace(snapshot, members=remaining)
    if not remaining:
        return None
    heir = min(remaining, key=lambda m: (m.joined_date, m.member_id))
    return replace(snapshot, owner_id=heir.user_id, members=remaining)


class LeaveOutcome(str, Enum):
    LEFT = "left"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"
    DISSOLVED = "dissolved"


def can_manage(group: ChatGroup, user: User) -> bool:
    """Owners manage their groups; only administrators manage the default one."""
    if user.is_admin:
        return True
    return not group.is_default and group.owner_id == user.id


class GroupService:
    """Creates groups and applies the membership state machine."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def create_group(
        self,
        creator: User,
        name: str,
        description: str | None = None,
        photo_url: str | None = None,
    ) -> ChatGroup:
        clean_name = (name or "").strip()
        if not clean_name:
            raise ValidationError("Group name cannot be empty")

        with unit_of_work(self.db):
            now = utcnow()
            group = ChatGroup(
                name=clean_name,
                description=(description or "").strip(),
                created_by_id=creator.id,
                owner_id=creator.id,
                created_date=now,
                last_activity_date=now,
                group_photo_url=photo_url or None,
                is_default=False,
            )
            self.db.add(group)
            self.db.flush()
            self.db.add(ChatGroupMember(group_id=group.id, user_id=creator.id, joined_date=now))

        logger.info("Group %d created by user %d", group.id, creator.id)
        return group

    def get_group(self, group_id: int, *, lock: bool = False) -> ChatGroup:
        stmt = select(ChatGroup).where(ChatGroup.id == group_id)
        if lock:
            stmt = stmt.with_for_update()
        group = self.db.scalar(stmt)
        if group is None:
            raise NotFound("Group not found")
        return group

    def members_of(self, group_id: int) -> list[ChatGroupMember]:
        return list(
            self.db.scalars(
                select(ChatGroupMember)
                .where(ChatGroupMember.group_id == group_id)
                .order_by(ChatGroupMember.joined_date, ChatGroupMember.id)
            )
        )

    def membership(self, group_id: int, user_id: int) -> ChatGroupMember | None:
        return self.db.scalar(
            select(ChatGroupMember).where(
                ChatGroupMember.group_id == group_id,
                ChatGroupMember.user_id == user_id,
            )
        )

    def open_group(self, group_id: int, viewer: User) -> ChatGroup:
        """Load a group for display.

        A non-member opening the default group is enrolled on the spot; any
        other non-member is refused unless they are an administrator. The
        viewer's unread notifications for the group are marked read.
        """
        with unit_of_work(self.db):
            group = self.get_group(group_id)
            if self.membership(group_id, viewer.id) is None and not viewer.is_admin:
                if not group.is_default:
                    raise Forbidden("Only members can view this group")
                self.db.add(ChatGroupMember(group_id=group_id, user_id=viewer.id, joined_date=utcnow()))
                logger.info("Enrolled user %d into default group %d", viewer.id, group_id)
            notifications.mark_read(
                self.db,
                recipient_id=viewer.id,
                action_url=notifications.group_link(group_id),
            )
        return group

    def list_groups(self, user: User) -> list[tuple[ChatGroup, int]]:
        """Groups the user belongs to, most recently active first, with unread counts."""
        groups = list(
            self.db.scalars(
                select(ChatGroup)
                .join(ChatGroupMember, ChatGroupMember.group_id == ChatGroup.id)
                .where(ChatGroupMember.user_id == user.id)
                .order_by(ChatGroup.last_activity_date.desc(), ChatGroup.id.desc())
            )
        )
        counts = notifications.unread_counts(
            self.db,
            recipient_id=user.id,
            action_urls=[notifications.group_link(g.id) for g in groups],
        )
        return [(g, counts.get(notifications.group_link(g.id), 0)) for g in groups]

    def add_member(self, group_id: int, caller: User, username: str) -> ChatGroup:
        """Add ``username`` to the group. Adding an existing member is a no-op."""
        with unit_of_work(self.db):
            group = self.get_group(group_id)
            if not can_manage(group, caller):
                raise Forbidden("Only the group owner or an administrator can add members")

            target = self.db.scalar(select(User).where(User.username == username.strip()))
            if target is None:
                raise NotFound(f"User '{username}' not found")

            if self.membership(group_id, target.id) is not None:
                return group

            self.db.add(ChatGroupMember(group_id=group_id, user_id=target.id, joined_date=utcnow()))
            notifications.notify(
                self.db,
                recipient_id=target.id,
                sender_id=caller.id,
                title=notifications.TITLE_ADDED_TO_GROUP,
                message=f"{caller.label} added you to '{group.name}'",
                action_url=notifications.group_link(group_id),
            )

        logger.info("User %d added user %d to group %d", caller.id, target.id, group_id)
        return group

    def remove_member(self, group_id: int, caller: User, member_user_id: int) -> ChatGroup:
        """Remove a member other than the owner. Unknown members are ignored."""
        with unit_of_work(self.db):
            group = self.get_group(group_id, lock=True)
            if not can_manage(group, caller):
                raise Forbidden("Only the group owner or an administrator can remove members")
            if member_user_id == group.owner_id:
                raise ValidationError("The group owner cannot be removed")

            membership = self.membership(group_id, member_user_id)
            if membership is not None:
                self.db.delete(membership)
                logger.info("User %d removed user %d from group %d", caller.id, member_user_id, group_id)
        return group

    def leave_group(self, group_id: int, caller: User) -> LeaveOutcome:
        with unit_of_work(self.db):
            group = self.get_group(group_id, lock=True)
            if group.is_default:
                raise ValidationError("Cannot leave the default organization chat.")

            members = self.members_of(group_id)
            membership = next((m for m in members if m.user_id == caller.id), None)
            if membership is None:
                raise NotFound("You are not a member of this group")

            after = transfer_ownership(GroupSnapshot.of(group, members), caller.id)
            self.db.delete(membership)

            if after is None:
                self._purge(group)
                outcome = LeaveOutcome.DISSOLVED
            elif after.owner_id != group.owner_id:
                group.owner_id = after.owner_id
                outcome = LeaveOutcome.OWNERSHIP_TRANSFERRED
            else:
                outcome = LeaveOutcome.LEFT

        if outcome is LeaveOutcome.DISSOLVED:
            logger.info("Group %d dissolved after its last member %d left", group_id, caller.id)
        elif outcome is LeaveOutcome.OWNERSHIP_TRANSFERRED:
            logger.info("Group %d ownership transferred from %d to %d", group_id, caller.id, after.owner_id)
        return outcome

    def delete_group(self, group_id: int, caller: User) -> None:
        with unit_of_work(self.db):
            group = self.get_group(group_id, lock=True)
            if group.is_default:
                raise ValidationError("The default organization chat cannot be deleted.")
            owner_may_delete = settings.group_owner_can_delete and group.owner_id == caller.id
            if not caller.is_admin and not owner_may_delete:
                raise Forbidden("Only an administrator can delete groups")
            self._purge(group)
        logger.info("Group %d deleted by user %d", group_id, caller.id)

    def update_photo(self, group_id: int, caller: User, photo_url: str | None) -> ChatGroup:
        with unit_of_work(self.db):
            group = self.get_group(group_id)
            if group.owner_id != caller.id and not caller.is_admin:
                raise Forbidden("Only the group owner or an administrator can change the photo")
            if photo_url:
                group.group_photo_url = photo_url
        return group

    def set_view_mode(self, group_id: int, caller: User, view_mode: str) -> ChatGroupMember | None:
        """Change how the caller sees the group. Non-members are ignored."""
        if view_mode not in VIEW_MODES:
            raise ValidationError(f"View mode must be one of: {', '.join(VIEW_MODES)}")
        with unit_of_work(self.db):
            self.get_group(group_id)
            membership = self.membership(group_id, caller.id)
            if membership is not None:
                membership.view_mode = view_mode
        return membership

    def _purge(self, group: ChatGroup) -> None:
        self.db.flush()
        self.db.execute(delete(ChatMessage).where(ChatMessage.group_id == group.id))
        self.db.execute(delete(ChatGroupMember).where(ChatGroupMember.group_id == group.id))
        self.db.delete(group)
