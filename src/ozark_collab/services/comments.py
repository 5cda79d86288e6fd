"""Comment tree management: threaded replies, notification fan-out, cascading delete."""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ozark_collab.core.errors import Forbidden, NotFound, ValidationError
from ozark_collab.core.settings import settings
from ozark_collab.models import Post, PostComment, PostCommentVote, User
from ozark_collab.services import notifications
from ozark_collab.services.realtime import Broadcaster, RealtimeEvent, publish
from ozark_collab.services.transaction import unit_of_work

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%b %d %H:%M"


@dataclass(frozen=True)
class TopLevel:
    """Placement of a comment directly under its post."""


@dataclass(frozen=True)
class Reply:
    """Placement of a comment under another comment of the same post."""

    parent_id: int


Placement = TopLevel | Reply


def placement_of(comment: PostComment) -> Placement:
    if comment.parent_comment_id is None:
        return TopLevel()
    return Reply(comment.parent_comment_id)


@dataclass
class CommentNode:
    """A comment with its replies, oldest first."""

    comment: PostComment
    replies: list[CommentNode] = field(default_factory=list)


def clean_content(content: str | None) -> str:
    """Validate comment text and return it stripped of surrounding whitespace."""
    text = (content or "").strip()
    if not text:
        raise ValidationError("Comment content cannot be empty")
    if len(text) > settings.comment_max_length:
        raise ValidationError(
            f"Comment content cannot exceed {settings.comment_max_length} characters"
        )
    return text


def comment_payload(comment: PostComment, author: User) -> dict[str, Any]:
    """Denormalized comment shape pushed to viewers and returned by the API."""
    return {
        "id": comment.id,
        "postId": comment.post_id,
        "parentId": comment.parent_comment_id,
        "content": comment.content,
        "user": author.label,
        "avatar": author.avatar_url,
        "date": comment.created_at.strftime(TIMESTAMP_FORMAT),
    }


def collect_descendants(children_of: dict[int, list[int]], root_id: int) -> list[int]:
    """Return ``root_id`` and every comment below it, breadth first."""
    collected = [root_id]
    queue = deque([root_id])
    seen = {root_id}
    while queue:
        current = queue.popleft()
        for child in children_of.get(current, ()):
            if child not in seen:
                seen.add(child)
                collected.append(child)
                queue.append(child)
    return collected


def build_tree(comments: Iterable[PostComment]) -> list[CommentNode]:
    """Arrange comments of one post into top-level nodes with nested replies."""
    nodes = {comment.id: CommentNode(comment) for comment in comments}
    roots: list[CommentNode] = []
    for node in nodes.values():
        placement = placement_of(node.comment)
        if isinstance(placement, Reply) and placement.parent_id in nodes:
            nodes[placement.parent_id].replies.append(node)
        else:
            roots.append(node)
    return roots


class CommentService:
    """Adds, edits, deletes and lists comments on posts."""

    def __init__(self, db: Session, broadcaster: Broadcaster | None = None) -> None:
        self.db = db
        self.broadcaster = broadcaster

    async def add_comment(
        self,
        post_id: int,
        author: User,
        content: str | None,
        parent_comment_id: int | None = None,
    ) -> PostComment:
        text = clean_content(content)

        with unit_of_work(self.db):
            post = self.db.get(Post, post_id)
            if post is None:
                raise NotFound("Post not found")

            parent: PostComment | None = None
            if parent_comment_id is not None:
                parent = self.db.get(PostComment, parent_comment_id)
                if parent is None or parent.post_id != post_id:
                    raise NotFound("Parent comment not found")

            comment = PostComment(
                post_id=post_id,
                user_id=author.id,
                content=text,
                parent_comment_id=parent_comment_id,
            )
            self.db.add(comment)
            # The notification links need the new id.
            self.db.flush()

            link = notifications.comment_anchor(comment.id)
            if post.user_id != author.id:
                notifications.notify(
                    self.db,
                    recipient_id=post.user_id,
                    sender_id=author.id,
                    title=notifications.TITLE_NEW_COMMENT,
                    message=f"{author.label} commented on your post.",
                    action_url=link,
                )
            if parent is not None and parent.user_id not in (author.id, post.user_id):
                notifications.notify(
                    self.db,
                    recipient_id=parent.user_id,
                    sender_id=author.id,
                    title=notifications.TITLE_NEW_REPLY,
                    message=f"{author.label} replied to your comment.",
                    action_url=link,
                )
            payload = comment_payload(comment, author)

        await publish(self.broadcaster, RealtimeEvent.COMMENT_ADDED, payload)
        return comment

    async def edit_comment(self, comment_id: int, editor: User, content: str | None) -> PostComment:
        text = clean_content(content)

        with unit_of_work(self.db):
            comment = self.db.get(PostComment, comment_id)
            if comment is None:
                raise NotFound("Comment not found")
            if comment.user_id != editor.id:
                raise Forbidden("Only the author can edit this comment")
            comment.content = text

        await publish(
            self.broadcaster,
            RealtimeEvent.COMMENT_EDITED,
            {"commentId": comment_id, "content": text},
        )
        return comment

    async def delete_comment(self, comment_id: int, caller: User) -> list[int]:
        """Delete a comment with all of its replies.

        Returns:
            Ids of every removed comment, the requested one first.
        """
        with unit_of_work(self.db):
            comment = self.db.get(PostComment, comment_id)
            if comment is None:
                raise NotFound("Comment not found")
            if comment.user_id != caller.id and not caller.is_admin:
                raise Forbidden("Only the author or an administrator can delete this comment")

            post_id = comment.post_id
            is_top_level = isinstance(placement_of(comment), TopLevel)
            removed = collect_descendants(self._children_of(post_id), comment_id)
            self._delete_rows(removed)

        logger.info("Deleted comment %d with %d replies", comment_id, len(removed) - 1)
        await publish(
            self.broadcaster,
            RealtimeEvent.COMMENT_DELETED,
            {"commentId": comment_id, "postId": post_id, "isTopLevel": is_top_level},
        )
        return removed

    def delete_for_post(self, post_id: int) -> int:
        """Remove every comment of a post inside the caller's transaction."""
        ids = list(self.db.scalars(select(PostComment.id).where(PostComment.post_id == post_id)))
        self._delete_rows(ids)
        return len(ids)

    def list_comments(self, post_id: int) -> list[CommentNode]:
        if self.db.get(Post, post_id) is None:
            raise NotFound("Post not found")
        comments = self.db.scalars(
            select(PostComment)
            .where(PostComment.post_id == post_id)
            .order_by(PostComment.created_at, PostComment.id)
        )
        return build_tree(comments)

    def top_level_count(self, post_id: int) -> int:
        return self.db.scalar(
            select(func.count(PostComment.id)).where(
                PostComment.post_id == post_id,
                PostComment.parent_comment_id.is_(None),
            )
        ) or 0

    def top_level_counts(self, post_ids: list[int]) -> dict[int, int]:
        if not post_ids:
            return {}
        rows = self.db.execute(
            select(PostComment.post_id, func.count(PostComment.id))
            .where(
                PostComment.post_id.in_(post_ids),
                PostComment.parent_comment_id.is_(None),
            )
            .group_by(PostComment.post_id)
        ).all()
        counts = {post_id: 0 for post_id in post_ids}
        counts.update({post_id: count for post_id, count in rows})
        return counts

    def _children_of(self, post_id: int) -> dict[int, list[int]]:
        children: dict[int, list[int]] = {}
        rows = self.db.execute(
            select(PostComment.id, PostComment.parent_comment_id).where(
                PostComment.post_id == post_id,
                PostComment.parent_comment_id.is_not(None),
            )
        ).all()
        for child_id, parent_id in rows:
            children.setdefault(parent_id, []).append(child_id)
        return children

    def _delete_rows(self, comment_ids: list[int]) -> None:
        if not comment_ids:
            return
        self.db.execute(
            delete(PostCommentVote).where(PostCommentVote.comment_id.in_(comment_ids))
        )
        self.db.execute(delete(PostComment).where(PostComment.id.in_(comment_ids)))
