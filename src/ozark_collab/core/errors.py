"""Domain errors raised by the collaboration services.

Each error carries the HTTP status the API layer renders it with. Services
raise these before any store mutation where possible; the exception handler
registered in ``main`` turns them into ``{"detail": ...}`` responses.
"""

from __future__ import annotations

from fastapi import status


class CollabError(Exception):
    """Base class for all collaboration domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Request could not be processed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(CollabError):
    """Input or rule violation detected before mutating anything."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class Unauthenticated(CollabError):
    """No usable caller identity."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"


class Forbidden(CollabError):
    """The caller is not allowed to perform the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this action"


class NotFound(CollabError):
    """A referenced post, comment, group or user does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ConflictOrTransient(CollabError):
    """The transaction was rolled back; the caller may retry."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "The request conflicted with a concurrent update, please retry"
