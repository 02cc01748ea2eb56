"""
Error taxonomy for the SkillSwap service layer.

Every exception carries the HTTP status it maps to, so the API layer can
render any of them with a single handler.
"""
from fastapi import status


class SkillSwapError(Exception):
    """Base exception for all SkillSwap errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str = "Unexpected error"):
        self.detail = detail
        super().__init__(detail)


class ValidationError(SkillSwapError):
    """Raised for malformed or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthorizationError(SkillSwapError):
    """Raised when the acting user is not allowed to touch a resource."""

    status_code = status.HTTP_403_FORBIDDEN


class RatingNotAllowedError(AuthorizationError):
    """Raised when a rating is submitted before the swap qualifies for one."""


class NotFoundError(SkillSwapError):
    """Raised when a user, request or other record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransitionError(SkillSwapError):
    """Raised when a swap request cannot move from its current status."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current_status: str, new_status: str, detail: str = None):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(detail or f"Cannot change status from {current_status} to {new_status}")


class ConflictError(SkillSwapError):
    """Raised when a write collides with existing data."""

    status_code = status.HTTP_409_CONFLICT


class DuplicateRatingError(ConflictError):
    """Raised when a user rates the same swap twice in the same phase."""

    def __init__(self, rating_type: str):
        self.rating_type = rating_type
        super().__init__(f"You have already submitted a {rating_type} rating for this swap")


class InfrastructureError(SkillSwapError):
    """Raised when the database fails underneath an operation."""
