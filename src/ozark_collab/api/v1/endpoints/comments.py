# src/ozark_collab/api/v1/endpoints/comments.py
"""Comment endpoints: threaded replies on posts."""

from fastapi import APIRouter, status

from ozark_collab.models import PostComment
from ozark_collab.schemas.comment import (
    CommentCreate,
    CommentDeleteResponse,
    CommentEditResponse,
    CommentResponse,
    CommentTreeNode,
    CommentUpdate,
)
from ozark_collab.services.comments import TIMESTAMP_FORMAT, CommentNode, CommentService

from ..dependencies import BroadcasterDep, CurrentUserDep, SessionDep

router = APIRouter(prefix="/comments", tags=["comments"])


def _comment_fields(comment: PostComment) -> dict[str, object]:
    return {
        "id": comment.id,
        "post_id": comment.post_id,
        "parent_id": comment.parent_comment_id,
        "content": comment.content,
        "user": comment.user.label,
        "avatar": comment.user.avatar_url,
        "date": comment.created_at.strftime(TIMESTAMP_FORMAT),
        "upvote_count": comment.upvote_count,
        "downvote_count": comment.downvote_count,
        "score": comment.score,
    }


def _to_tree_node(node: CommentNode) -> CommentTreeNode:
    return CommentTreeNode(
        **_comment_fields(node.comment),
        replies=[_to_tree_node(reply) for reply in node.replies],
    )


@router.post("/", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    broadcaster: BroadcasterDep,
) -> CommentResponse:
    """Comment on a post, or reply to a comment when a parent is given."""
    comment = await CommentService(db, broadcaster).add_comment(
        comment_data.post_id,
        current_user,
        comment_data.content,
        comment_data.parent_comment_id,
    )
    return CommentResponse(**_comment_fields(comment))


@router.get("/post/{post_id}", response_model=list[CommentTreeNode])
async def list_comments(
    post_id: int,
    _current_user: CurrentUserDep,
    db: SessionDep,
) -> list[CommentTreeNode]:
    """Comments of a post as a tree, oldest first."""
    roots = CommentService(db).list_comments(post_id)
    return [_to_tree_node(node) for node in roots]


@router.put("/{comment_id}", response_model=CommentEditResponse)
async def edit_comment(
    comment_id: int,
    comment_data: CommentUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
    broadcaster: BroadcasterDep,
) -> CommentEditResponse:
    """Replace the text of the caller's own comment."""
    comment = await CommentService(db, broadcaster).edit_comment(
        comment_id, current_user, comment_data.content
    )
    return CommentEditResponse(success=True, content=comment.content)


@router.delete("/{comment_id}", response_model=CommentDeleteResponse)
async def delete_comment(
    comment_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    broadcaster: BroadcasterDep,
) -> CommentDeleteResponse:
    """Delete a comment and every reply below it."""
    removed = await CommentService(db, broadcaster).delete_comment(comment_id, current_user)
    return CommentDeleteResponse(success=True, removed_ids=removed)
