"""Domain errors raised by the services and rendered by the API layer."""
from datetime import datetime

from fastapi import status


class AppError(Exception):
    """Base class for errors whose message is safe to show to the user."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Request could not be completed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_payload(self) -> dict:
        return {"detail": self.detail}


class ValidationFailed(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Please check your input and try again"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflicting state"


class AlreadyTaken(Conflict):
    default_detail = "That @ddress is already taken"


class DuplicateRequest(Conflict):
    default_detail = "Friend request already pending"


class AlreadyFriends(Conflict):
    default_detail = "You're already friends"


class AlreadyDeleted(Conflict):
    default_detail = "Post already deleted"


class CooldownActive(Conflict):
    default_detail = "You can only change your @ddress once per week"

    def __init__(self, next_allowed_at: datetime, detail: str | None = None):
        self.next_allowed_at = next_allowed_at
        super().__init__(detail or f"{self.default_detail}. Next change: {next_allowed_at.isoformat()}")

    def to_payload(self) -> dict:
        return {"detail": self.detail, "next_allowed_at": self.next_allowed_at.isoformat()}


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to do that"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class Gone(AppError):
    status_code = status.HTTP_410_GONE
    default_detail = "This content has been removed"


class Mismatch(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Reply target is not part of this post"


class SelfFriend(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "You can't friend yourself"


class AuthenticationFailed(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Not authenticated"


class TransientBackend(AppError):
    """Database unavailable or the transaction kept conflicting. Never shown verbatim."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Something went wrong on our side. Please try again."

    def to_payload(self) -> dict:
        return {"detail": self.default_detail}
