# src/ozark_collab/schemas/vote.py
"""Vote-related Pydantic schemas."""

from pydantic import BaseModel, Field


class VoteCreate(BaseModel):
    """Schema for casting a vote on a post or comment."""

    subject_id: int = Field(..., description="Id of the post or comment")
    value: int = Field(..., description="1 for upvote, -1 for downvote")


class VoteResponse(BaseModel):
    """Score after the vote and the caller's resulting vote."""

    score: int
    user_vote: int = Field(..., description="1, -1 or 0 when the vote was toggled off")


class MyVoteResponse(BaseModel):
    user_vote: int
