"""
Exceptions for the dispatch and lifecycle services.

Every error carries a machine-readable code and the HTTP status the API
layer should answer with, so views can render them without a lookup table.

Usage:
    try:
        accept(request_id, profile.id)
    except ConflictError as e:
        return Response(e.as_dict(), status=e.status_code)
"""

from typing import Any, Dict, Iterable, Optional


class MoveServiceError(Exception):
    """Base class for all dispatch/lifecycle errors."""

    code = "error"
    status_code = 400
    default_message = "Move operation failed"

    def __init__(self, message: Optional[str] = None, **data: Any):
        self.message = message or self.default_message
        self.data = data
        super().__init__(self.message)

    def as_dict(self) -> Dict[str, Any]:
        """Serialize to dict (API error body)."""
        return {
            "success": False,
            "error": self.code,
            "message": self.message,
            **self.data,
        }


class ValidationError(MoveServiceError):
    """Missing or malformed input; nothing was changed."""
    code = "validation_error"
    status_code = 400
    default_message = "Invalid input"


class NotFoundError(MoveServiceError):
    """Referenced move, request or profile does not exist."""
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class ForbiddenError(MoveServiceError):
    """Caller does not own the resource."""
    code = "forbidden"
    status_code = 403
    default_message = "You are not allowed to perform this action"


class ConflictError(MoveServiceError):
    """A precondition on mutable state no longer holds."""
    code = "conflict"
    status_code = 409
    default_message = "The resource changed; reload and try again"


class DependencyError(MoveServiceError):
    """Store or another collaborator could not be reached."""
    code = "dependency_unavailable"
    status_code = 503
    default_message = "Service temporarily unavailable"


# ---------------------- Conflict subtypes ----------------------

class InvalidTransitionError(ConflictError):
    """Requested status is not reachable from the move's current status."""
    code = "invalid_transition"

    def __init__(self, from_status: str, to_status: str, allowed: Iterable[str]):
        self.from_status = str(from_status)
        self.to_status = str(to_status)
        self.allowed = [str(s) for s in allowed]
        super().__init__(
            f"Invalid transition: {self.from_status} → {self.to_status}. "
            f"Allowed: {', '.join(self.allowed) or 'none'}",
            from_status=self.from_status,
            to_status=self.to_status,
            allowed=self.allowed,
        )


class RequestNotPendingError(ConflictError):
    """Offer was already answered (accepted, declined) or expired."""
    code = "request_not_pending"
    default_message = "Request is no longer pending"


class OfferExpiredError(RequestNotPendingError):
    """Offer deadline passed before the mover answered."""
    code = "request_expired"
    default_message = "Request has expired"


class MoveNotAssignableError(ConflictError):
    """Move already has a mover or is not waiting for one."""
    code = "move_not_assignable"
    default_message = "Move is no longer awaiting a mover"


class StaleMoveError(ConflictError):
    """Move status changed between read and write."""
    code = "stale_move"
    default_message = "Move status changed concurrently; reload and retry"


class AlreadyReviewedError(ConflictError):
    """Reviewer already left a review for this move."""
    code = "already_reviewed"
    default_message = "You have already reviewed this move"
