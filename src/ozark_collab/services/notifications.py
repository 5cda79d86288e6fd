"""Helpers that append notifications inside the caller's transaction.

Nothing here commits; the calling service owns the unit of work.
"""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from ozark_collab.core.settings import settings
from ozark_collab.db.time import utcnow
from ozark_collab.models import Notification

TITLE_NEW_UPVOTE = "New Upvote"
TITLE_NEW_COMMENT = "New Comment"
TITLE_NEW_REPLY = "New Reply"
TITLE_ADDED_TO_GROUP = "Added to Group"
TITLE_POST_SHARED = "Post Shared"
TITLE_POST_SHARED_PRIVATELY = "Shared a post with you"


def post_anchor(post_id: int) -> str:
    return f"/Collaboration#post-{post_id}"


def comment_anchor(comment_id: int) -> str:
    return f"/Collaboration#comment-{comment_id}"


def group_link(group_id: int) -> str:
    return f"/Collaboration/Details/{group_id}"


def private_chat_link(chat_id: int) -> str:
    return f"/Collaboration/PrivateDetails/{chat_id}"


def profile_link(user_id: int) -> str:
    return f"/Account/Profile?userId={user_id}"


def message_preview(message: str | None) -> str:
    """Shorten chat text for a notification body.

    Text longer than ``NOTIFICATION_PREVIEW_LENGTH`` keeps its first
    ``limit - 3`` characters followed by an ellipsis; blank text means the
    message only carried an attachment.
    """
    if message is None or not message.strip():
        return "Sent an attachment"
    limit = settings.notification_preview_length
    if len(message) > limit:
        return message[: limit - 3] + "..."
    return message


def notify(
    db: Session,
    *,
    recipient_id: int | None,
    sender_id: int | None,
    title: str,
    message: str,
    action_url: str | None = None,
) -> Notification:
    """Stage a notification row on ``db``."""
    notification = Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        title=title,
        message=message,
        action_url=action_url,
        sent_date=utcnow(),
        is_read=False,
    )
    db.add(notification)
    return notification


def recently_notified(
    db: Session,
    *,
    recipient_id: int,
    sender_id: int,
    title: str,
    action_url: str,
    window: timedelta | None = None,
) -> bool:
    """Return True when the same notification was sent inside ``window``."""
    if window is None:
        window = timedelta(minutes=settings.upvote_notification_window_minutes)
    since = utcnow() - window
    stmt = select(func.count(Notification.id)).where(
        Notification.recipient_id == recipient_id,
        Notification.sender_id == sender_id,
        Notification.title == title,
        Notification.action_url == action_url,
        Notification.sent_date > since,
    )
    return (db.scalar(stmt) or 0) > 0


def mark_read(db: Session, *, recipient_id: int, action_url: str) -> int:
    """Flag the recipient's unread notifications for ``action_url`` as read."""
    result = db.execute(
        update(Notification)
        .where(
            Notification.recipient_id == recipient_id,
            Notification.is_read.is_(False),
            Notification.action_url == action_url,
        )
        .values(is_read=True)
    )
    return result.rowcount or 0


def unread_counts(db: Session, *, recipient_id: int, action_urls: list[str]) -> dict[str, int]:
    """Count unread notifications per link for the chat list badges."""
    if not action_urls:
        return {}
    rows = db.execute(
        select(Notification.action_url, func.count(Notification.id))
        .where(
            Notification.recipient_id == recipient_id,
            Notification.is_read.is_(False),
            Notification.action_url.in_(action_urls),
        )
        .group_by(Notification.action_url)
    ).all()
    counts = {url: 0 for url in action_urls}
    counts.update({url: count for url, count in rows})
    return counts
