"""
Services package - Business logic layer.

This package contains all business logic services that operate on Django models
but are decoupled from the HTTP/WebSocket layer.

Modules:
    - matching: Mover matching and offer dispatch
    - move_management: Move state machine, offer arbitration and lifecycle
    - exceptions: Error taxonomy shared by both
"""

# Expose commonly used functions at package level
from .matching import (
    broadcast,
    broadcast_move,
    find_candidates,
    expire_stale_requests,
    OfferSet,
)
from .move_management import (
    create_move,
    change_move_status,
    accept_move_request,
    decline_move_request,
    transition,
)
from .exceptions import (
    MoveServiceError,
    ValidationError,
    NotFoundError,
    ForbiddenError,
    ConflictError,
    DependencyError,
)

__all__ = [
    # Matching
    "broadcast",
    "broadcast_move",
    "find_candidates",
    "expire_stale_requests",
    "OfferSet",
    # Move management
    "create_move",
    "change_move_status",
    "accept_move_request",
    "decline_move_request",
    "transition",
    # Exceptions
    "MoveServiceError",
    "ValidationError",
    "NotFoundError",
    "ForbiddenError",
    "ConflictError",
    "DependencyError",
]
