"""
Move management service - state machine, arbitration and lifecycle.

This module handles:
    - The move status transition table and status writes
    - Accepting/declining move requests (single winner per move)
    - Creating moves and actor-checked status changes
    - Client reviews of completed moves
    - Querying moves and their history
"""

from .state_machine import (
    TRANSITIONS,
    TERMINAL_STATUSES,
    NotificationIntent,
    TransitionOutcome,
    allowed_transitions,
    can_transition,
    transition,
)
from .arbitration import (
    AcceptResult,
    accept,
    decline,
    decline_sibling_requests,
    accept_move_request,
    decline_move_request,
)
from .move_lifecycle import (
    create_move,
    change_move_status,
    get_move,
    get_move_history,
    get_moves_for_user,
    get_current_mover_move,
    submit_review,
)

__all__ = [
    # State machine
    "TRANSITIONS",
    "TERMINAL_STATUSES",
    "NotificationIntent",
    "TransitionOutcome",
    "allowed_transitions",
    "can_transition",
    "transition",
    # Arbitration
    "AcceptResult",
    "accept",
    "decline",
    "decline_sibling_requests",
    "accept_move_request",
    "decline_move_request",
    # Lifecycle
    "create_move",
    "change_move_status",
    "get_move",
    "get_move_history",
    "get_moves_for_user",
    "get_current_mover_move",
    "submit_review",
]
