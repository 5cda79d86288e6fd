"""Service-level helpers for feed posts."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ozark_collab.core.errors import ConflictOrTransient, Forbidden, NotFound, ValidationError
from ozark_collab.core.settings import settings
from ozark_collab.models import Post, PostVote, SharedPost, User
from ozark_collab.models.vote import UPVOTE
from ozark_collab.services import notifications
from ozark_collab.services.comments import CommentService
from ozark_collab.services.realtime import Broadcaster, RealtimeEvent, publish
from ozark_collab.services.transaction import unit_of_work
from ozark_collab.services.votes import POST_VOTES, VoteAggregator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PostView:
    """A post decorated for one viewer."""

    post: Post
    comment_count: int
    user_vote: int


def _clean_post_content(content: str | None) -> str:
    text = (content or "").strip()
    if len(text) > settings.post_max_length:
        raise ValidationError(f"Post content cannot exceed {settings.post_max_length} characters")
    return text


class PostService:
    """Creates, edits, deletes and lists posts."""

    def __init__(self, db: Session, broadcaster: Broadcaster | None = None) -> None:
        self.db = db
        self.broadcaster = broadcaster
        self.comments = CommentService(db, broadcaster)
        self.votes = VoteAggregator(db, broadcaster)

    def create_post(
        self,
        author: User,
        content: str | None = None,
        image_url: str | None = None,
        attachment_url: str | None = None,
    ) -> Post:
        """Create a post carrying its author's upvote.

        Raises:
            ValidationError: If the post has neither text nor media.
        """
        text = _clean_post_content(content)
        if not text and not image_url and not attachment_url:
            raise ValidationError("A post needs text, an image or an attachment")

        with unit_of_work(self.db):
            post = Post(
                user_id=author.id,
                content=text,
                image_url=image_url,
                attachment_url=attachment_url,
                upvote_count=1,
                downvote_count=0,
            )
            self.db.add(post)
            self.db.flush()
            self.db.add(PostVote(post_id=post.id, user_id=author.id, value=UPVOTE))

        logger.info("Post %d created by user %d", post.id, author.id)
        return post

    def get_post(self, post_id: int) -> Post:
        post = self.db.get(Post, post_id)
        if post is None:
            raise NotFound("Post not found")
        return post

    def view(self, post: Post, viewer: User) -> PostView:
        return PostView(
            post=post,
            comment_count=self.comments.top_level_count(post.id),
            user_vote=self.votes.get_user_vote(POST_VOTES, post.id, viewer.id),
        )

    def list_posts(self, viewer: User, *, limit: int = 50, offset: int = 0) -> list[PostView]:
        """Newest posts first, with comment counts and the viewer's votes."""
        posts = list(
            self.db.scalars(
                select(Post).order_by(Post.created_at.desc(), Post.id.desc()).offset(offset).limit(limit)
            )
        )
        ids = [post.id for post in posts]
        counts = self.comments.top_level_counts(ids)
        my_votes = self.votes.user_votes(POST_VOTES, ids, viewer.id)
        return [PostView(post, counts.get(post.id, 0), my_votes.get(post.id, 0)) for post in posts]

    async def edit_post(self, post_id: int, editor: User, content: str | None) -> Post:
        text = _clean_post_content(content)
        with unit_of_work(self.db):
            post = self.get_post(post_id)
            if post.user_id != editor.id and not editor.is_admin:
                raise Forbidden("Only the author or an administrator can edit this post")
            if not text and not post.image_url and not post.attachment_url:
                raise ValidationError("A post needs text, an image or an attachment")
            post.content = text

        await publish(
            self.broadcaster,
            RealtimeEvent.POST_EDITED,
            {"postId": post_id, "content": text},
        )
        return post

    async def delete_post(self, post_id: int, caller: User) -> None:
        """Delete a post with its votes, comments and comment votes."""
        with unit_of_work(self.db):
            post = self.get_post(post_id)
            if post.user_id != caller.id and not caller.is_admin:
                raise Forbidden("Only the author or an administrator can delete this post")
            removed_comments = self.comments.delete_for_post(post_id)
            self.db.execute(delete(SharedPost).where(SharedPost.post_id == post_id))
            self.db.execute(delete(PostVote).where(PostVote.post_id == post_id))
            self.db.execute(delete(Post).where(Post.id == post_id))

        logger.info("Post %d deleted by user %d with %d comments", post_id, caller.id, removed_comments)
        await publish(self.broadcaster, RealtimeEvent.POST_DELETED, {"postId": post_id})

    def _share_of(self, post_id: int, user_id: int) -> SharedPost | None:
        return self.db.scalar(
            select(SharedPost).where(SharedPost.post_id == post_id, SharedPost.user_id == user_id)
        )

    def share_on_feed(self, post_id: int, sharer: User) -> SharedPost:
        """Re-share a post onto the sharer's feed and tell the post's author.

        Raises:
            NotFound: If the post does not exist.
            ValidationError: If the sharer already shared this post.
        """
        post = self.get_post(post_id)
        if self._share_of(post_id, sharer.id) is not None:
            raise ValidationError("You already shared this post.")

        try:
            with unit_of_work(self.db):
                shared = SharedPost(user_id=sharer.id, post_id=post_id)
                self.db.add(shared)
                if post.user_id != sharer.id:
                    notifications.notify(
                        self.db,
                        recipient_id=post.user_id,
                        sender_id=sharer.id,
                        title=notifications.TITLE_POST_SHARED,
                        message=f"{sharer.label} shared your post to their feed.",
                        action_url=notifications.profile_link(sharer.id),
                    )
        except ConflictOrTransient as exc:
            if self._share_of(post_id, sharer.id) is not None:
                raise ValidationError("You already shared this post.") from exc
            raise

        logger.info("Post %d shared by user %d", post_id, sharer.id)
        return shared

    def shared_posts_of(self, user_id: int) -> list[SharedPost]:
        """Posts a user re-shared, most recent share first."""
        return list(
            self.db.scalars(
                select(SharedPost)
                .where(SharedPost.user_id == user_id)
                .order_by(SharedPost.shared_at.desc(), SharedPost.id.desc())
            )
        )
