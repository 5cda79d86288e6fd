"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ozark_collab.core.errors import Unauthenticated
from ozark_collab.core.security import decode_access_token
from ozark_collab.db.session import get_db
from ozark_collab.models import User
from ozark_collab.services.realtime import Broadcaster, get_broadcaster

# HTTP Bearer scheme; missing credentials are reported as 401 by get_current_user
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def resolve_user(db: Session, token: str) -> User:
    """Return the user a bearer token belongs to.

    Raises:
        Unauthenticated: If the token is invalid or names an unknown user.
    """
    user_id = decode_access_token(token)
    user = db.get(User, user_id)
    if user is None:
        raise Unauthenticated("User not found")
    return user


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from the JWT bearer token.

    Args:
        credentials: HTTP Bearer token credentials, if any were sent
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        Unauthenticated: If no token was sent, it is invalid or the user is unknown
    """
    if credentials is None:
        raise Unauthenticated()
    return resolve_user(db, credentials.credentials)


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]

# Type alias for the realtime broadcaster dependency
BroadcasterDep = Annotated[Broadcaster, Depends(get_broadcaster)]
