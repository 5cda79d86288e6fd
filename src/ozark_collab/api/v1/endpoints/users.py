"""User lookup endpoints."""

from fastapi import APIRouter, Query

from ozark_collab.schemas.user import UserSearchResult
from ozark_collab.services.users import search_users

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=list[UserSearchResult])
async def search(
    _current_user: CurrentUserDep,
    db: SessionDep,
    query: str = Query("", description="Part of a username"),
) -> list[UserSearchResult]:
    """Up to ten users whose username contains the query, ignoring case."""
    return [UserSearchResult.model_validate(user) for user in search_users(db, query)]
