"""
Move status state machine.

TRANSITIONS is the single source of truth for which status changes are
legal. Every status write goes through transition(), which validates
against the table, writes the move conditionally on the status it was read
with, appends one history entry and returns the client notification (if
any) for the caller to emit once its own writes are done.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from django.db import DatabaseError, transaction
from django.utils import timezone

from moves.models import Move, MoveStatus, MoveStatusHistory
from services.exceptions import (
    DependencyError,
    InvalidTransitionError,
    MoveNotAssignableError,
    StaleMoveError,
    ValidationError,
)

logger = logging.getLogger(__name__)

S = MoveStatus

# from-status -> statuses reachable in one step (order is the display order)
TRANSITIONS: Dict[str, Tuple[str, ...]] = {
    S.DRAFT: (S.PENDING_PAYMENT, S.CANCELLED_BY_CLIENT),
    S.PENDING_PAYMENT: (S.PAID, S.CANCELLED_BY_CLIENT),
    S.PAID: (S.MOVER_ASSIGNED, S.CANCELLED_BY_CLIENT),
    S.MOVER_ASSIGNED: (S.MOVER_ACCEPTED, S.CANCELLED_BY_MOVER),
    S.MOVER_ACCEPTED: (S.MOVER_EN_ROUTE, S.CANCELLED_BY_MOVER, S.CANCELLED_BY_CLIENT),
    S.MOVER_EN_ROUTE: (S.MOVER_ARRIVED, S.CANCELLED_BY_MOVER),
    S.MOVER_ARRIVED: (S.LOADING,),
    S.LOADING: (S.IN_TRANSIT,),
    S.IN_TRANSIT: (S.ARRIVED_DESTINATION,),
    S.ARRIVED_DESTINATION: (S.UNLOADING,),
    S.UNLOADING: (S.COMPLETED,),
    S.COMPLETED: (S.DISPUTED,),
    S.DISPUTED: (S.COMPLETED,),
    S.CANCELLED_BY_CLIENT: (),
    S.CANCELLED_BY_MOVER: (),
}

TERMINAL_STATUSES = frozenset(status for status, allowed in TRANSITIONS.items() if not allowed)

# A mover is bound from assignment onwards
PRE_ASSIGNMENT_STATUSES = frozenset({S.DRAFT, S.PENDING_PAYMENT, S.PAID})
ASSIGNED_STATUSES = frozenset(TRANSITIONS) - PRE_ASSIGNMENT_STATUSES - TERMINAL_STATUSES

# Client-facing messages, keyed by the status being entered
CLIENT_NOTIFICATIONS = {
    S.MOVER_ACCEPTED: ("Mover Accepted", "A mover has accepted your move request!"),
    S.MOVER_EN_ROUTE: ("Mover En Route", "Your mover is on the way to your pickup location."),
    S.MOVER_ARRIVED: ("Mover Arrived", "Your mover has arrived at the pickup location."),
    S.LOADING: ("Loading Started", "Your items are being loaded."),
    S.IN_TRANSIT: ("In Transit", "Your items are on the way to the destination."),
    S.ARRIVED_DESTINATION: ("Arrived", "Your mover has arrived at the destination."),
    S.COMPLETED: ("Move Completed", "Your move has been completed! Please leave a review."),
    S.CANCELLED_BY_MOVER: ("Move Cancelled", "The mover has cancelled this move."),
}


def allowed_transitions(status) -> Tuple[str, ...]:
    """Statuses reachable from `status`; empty for terminal or unknown statuses."""
    return TRANSITIONS.get(status, ())


def can_transition(from_status, to_status) -> bool:
    return to_status in allowed_transitions(from_status)


@dataclass(frozen=True)
class NotificationIntent:
    """What to tell whom; delivery is left to the notification sink."""
    user_id: int
    kind: str
    title: str
    body: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TransitionOutcome:
    """Result of one accepted transition."""
    move: Move
    history_entry: MoveStatusHistory
    notification: Optional[NotificationIntent] = None

    @property
    def previous_status(self) -> str:
        return self.history_entry.from_status


def build_notification_intent(move: Move, to_status) -> Optional[NotificationIntent]:
    """Client notification for entering `to_status`, or None if the client isn't told."""
    message = CLIENT_NOTIFICATIONS.get(to_status)
    if message is None:
        return None

    title, body = message
    return NotificationIntent(
        user_id=move.client_id,
        kind="move_completed" if to_status == S.COMPLETED else "system",
        title=title,
        body=body,
        data={"move_id": str(move.pk), "handle": move.handle, "status": str(to_status)},
    )


def transition(
    move: Move,
    to_status,
    actor_id,
    note: Optional[str] = None,
    mover_profile_id: Optional[int] = None,
) -> TransitionOutcome:
    """
    Apply one status change to a move.

    The move must have been read just before; the write only succeeds if the
    stored status (and mover) still match what was read.

    Args:
        move: Move instance as last read from the store
        to_status: Requested status
        actor_id: Who makes the change (recorded in history)
        note: Optional history note
        mover_profile_id: Mover to bind; only used when entering mover_assigned

    Returns:
        TransitionOutcome with the updated move, the history entry and the
        client notification intent (None for silent transitions)

    Raises:
        ValidationError: Unknown status, or mover missing for mover_assigned
        InvalidTransitionError: `to_status` not allowed from the current status
        StaleMoveError: The stored move changed since it was read
        DependencyError: Store failure
    """
    if to_status not in S.values:
        raise ValidationError(f"Unknown move status: {to_status}", status=str(to_status))
    to_status = S(to_status)
    from_status = move.status

    if not can_transition(from_status, to_status):
        raise InvalidTransitionError(from_status, to_status, allowed_transitions(from_status))

    now = timezone.now()
    changes = {"status": to_status, "updated_at": now}

    if to_status == S.MOVER_ASSIGNED:
        mover_id = mover_profile_id or move.mover_profile_id
        if mover_id is None:
            raise ValidationError("A mover is required to assign this move", move_id=str(move.pk))
        if move.mover_profile_id is not None and move.mover_profile_id != mover_id:
            raise MoveNotAssignableError("Move is already assigned to another mover", move_id=str(move.pk))
        changes["mover_profile_id"] = mover_id
    elif mover_profile_id is not None and mover_profile_id != move.mover_profile_id:
        raise ValidationError("A mover can only be bound when assigning the move", move_id=str(move.pk))

    if to_status == S.PAID:
        changes["paid_at"] = now
    elif to_status == S.COMPLETED:
        changes["completed_at"] = now

    try:
        with transaction.atomic():
            updated = Move.objects.filter(
                pk=move.pk,
                status=from_status,
                mover_profile_id=move.mover_profile_id,
            ).update(**changes)
            if not updated:
                raise StaleMoveError(move_id=str(move.pk), expected_status=str(from_status))

            entry = MoveStatusHistory.objects.create(
                move_id=move.pk,
                from_status=from_status,
                to_status=to_status,
                changed_by=str(actor_id),
                changed_at=now,
                note=note or None,
            )
    except DatabaseError as exc:
        logger.exception("Failed to write status change for move %s", move.pk)
        raise DependencyError("Could not update move status") from exc

    for name, value in changes.items():
        setattr(move, name, value)

    logger.info("Move %s: %s → %s by %s", move.pk, from_status, to_status, actor_id)

    return TransitionOutcome(
        move=move,
        history_entry=entry,
        notification=build_notification_intent(move, to_status),
    )
