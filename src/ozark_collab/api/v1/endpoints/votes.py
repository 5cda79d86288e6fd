# src/ozark_collab/api/v1/endpoints/votes.py
"""Vote-related endpoints for the collaboration API."""

from fastapi import APIRouter

from ozark_collab.schemas.vote import MyVoteResponse, VoteCreate, VoteResponse
from ozark_collab.services.votes import COMMENT_VOTES, POST_VOTES, VoteAggregator

from ..dependencies import BroadcasterDep, CurrentUserDep, SessionDep

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("/posts", response_model=VoteResponse)
async def vote_on_post(
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    broadcaster: BroadcasterDep,
) -> VoteResponse:
    """Cast, toggle off or switch a vote on a post."""
    result = await VoteAggregator(db, broadcaster).apply_vote(
        POST_VOTES, vote_data.subject_id, current_user, vote_data.value
    )
    return VoteResponse(score=result.score, user_vote=result.user_vote)


@router.post("/comments", response_model=VoteResponse)
async def vote_on_comment(
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    broadcaster: BroadcasterDep,
) -> VoteResponse:
    """Cast, toggle off or switch a vote on a comment."""
    result = await VoteAggregator(db, broadcaster).apply_vote(
        COMMENT_VOTES, vote_data.subject_id, current_user, vote_data.value
    )
    return VoteResponse(score=result.score, user_vote=result.user_vote)


@router.get("/posts/{post_id}/my-vote", response_model=MyVoteResponse)
async def get_my_post_vote(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MyVoteResponse:
    """Get current user's vote on a specific post."""
    value = VoteAggregator(db).get_user_vote(POST_VOTES, post_id, current_user.id)
    return MyVoteResponse(user_vote=value)


@router.get("/comments/{comment_id}/my-vote", response_model=MyVoteResponse)
async def get_my_comment_vote(
    comment_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MyVoteResponse:
    """Get current user's vote on a specific comment."""
    value = VoteAggregator(db).get_user_vote(COMMENT_VOTES, comment_id, current_user.id)
    return MyVoteResponse(user_vote=value)
