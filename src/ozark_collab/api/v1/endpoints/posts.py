# src/ozark_collab/api/v1/endpoints/posts.py
"""Post-related endpoints for the collaboration API."""

from fastapi import APIRouter, Query, Response, status

from ozark_collab.schemas.post import PostCreate, PostResponse, PostUpdate, SharedPostResponse
from ozark_collab.services.posts import PostService, PostView

from ..dependencies import BroadcasterDep, CurrentUserDep, SessionDep

router = APIRouter(prefix="/posts", tags=["posts"])


def to_post_response(view: PostView) -> PostResponse:
    """Convert a decorated post to its API schema."""
    post = view.post
    return PostResponse(
        id=post.id,
        user_id=post.user_id,
        author=post.user.label,
        avatar=post.user.avatar_url,
        content=post.content,
        image_url=post.image_url,
        attachment_url=post.attachment_url,
        created_at=post.created_at,
        upvote_count=post.upvote_count,
        downvote_count=post.downvote_count,
        score=post.score,
        comment_count=view.comment_count,
        user_vote=view.user_vote,
    )


@router.get("/", response_model=list[PostResponse])
async def list_posts(
    current_user: CurrentUserDep,
    db: SessionDep,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> list[PostResponse]:
    """List posts, newest first."""
    service = PostService(db)
    return [to_post_response(view) for view in service.list_posts(current_user, limit=limit, offset=offset)]


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostResponse:
    """Get a specific post by ID."""
    service = PostService(db)
    return to_post_response(service.view(service.get_post(post_id), current_user))


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostResponse:
    """Create a new post. The author's upvote is recorded with it."""
    service = PostService(db)
    post = service.create_post(
        current_user,
        content=post_data.content,
        image_url=post_data.image_url,
        attachment_url=post_data.attachment_url,
    )
    return to_post_response(service.view(post, current_user))


@router.put("/{post_id}", response_model=PostResponse)
async def edit_post(
    post_id: int,
    post_data: PostUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
    broadcaster: BroadcasterDep,
) -> PostResponse:
    """Replace the text of a post."""
    service = PostService(db, broadcaster)
    post = await service.edit_post(post_id, current_user, post_data.content)
    return to_post_response(service.view(post, current_user))


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    broadcaster: BroadcasterDep,
) -> Response:
    """Delete a post together with its votes and comments."""
    await PostService(db, broadcaster).delete_post(post_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{post_id}/share", response_model=SharedPostResponse, status_code=status.HTTP_201_CREATED)
async def share_on_feed(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> SharedPostResponse:
    """Re-share a post onto the caller's feed; each post can be shared once."""
    shared = PostService(db).share_on_feed(post_id, current_user)
    return SharedPostResponse(
        id=shared.id,
        post_id=shared.post_id,
        user_id=shared.user_id,
        shared_at=shared.shared_at,
    )


@router.get("/shared/{user_id}", response_model=list[PostResponse])
async def list_shared_posts(
    user_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[PostResponse]:
    """Posts a user re-shared, most recent share first."""
    service = PostService(db)
    return [to_post_response(service.view(shared.post, current_user)) for shared in service.shared_posts_of(user_id)]
