"""
Offer arbitration: resolve mover answers so exactly one mover wins a move.

Accepting runs in two phases:
    1. Binding (must succeed): request pending -> accepted and the move driven
       to mover_accepted through the state machine, in one atomic block. Each
       write is conditional on the state read just before it, so of two
       movers accepting at the same time only one can get through.
    2. Cleanup (advisory): decline the other pending offers of the move and
       emit notifications. Failures are logged and never undo the accept;
       leftover offers simply expire.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from movers.models import MoverProfile
from moves.models import Move, MoveRequest, MoveRequestStatus, MoveStatus
from services.exceptions import (
    DependencyError,
    ForbiddenError,
    MoveNotAssignableError,
    NotFoundError,
    OfferExpiredError,
    RequestNotPendingError,
)
from .state_machine import transition

logger = logging.getLogger(__name__)

# Move statuses in which an offer can still be accepted
ASSIGNABLE_STATUSES = (MoveStatus.PAID, MoveStatus.MOVER_ASSIGNED)


@dataclass
class AcceptResult:
    """Result object for a successful accept."""
    move_id: str
    request_id: str
    move: Optional[Move] = None
    siblings_declined: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return {"move_id": self.move_id, "request_id": self.request_id}


# ===================== Helpers =====================

def _get_request(request_id) -> MoveRequest:
    try:
        return MoveRequest.objects.select_related("mover_profile").get(id=request_id)
    except (MoveRequest.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFoundError("Move request not found", request_id=str(request_id))


def _check_answerable(offer: MoveRequest, mover_profile_id, now) -> None:
    """Ownership, pending status and deadline checks shared by accept/decline."""
    if offer.mover_profile_id != mover_profile_id:
        raise ForbiddenError("Request does not belong to this mover", request_id=str(offer.id))

    if offer.status != MoveRequestStatus.PENDING:
        raise RequestNotPendingError(request_id=str(offer.id), status=offer.status)

    if offer.is_expired(now):
        _mark_expired(offer)
        raise OfferExpiredError(request_id=str(offer.id), expires_at=offer.expires_at.isoformat())


def _mark_expired(offer: MoveRequest) -> None:
    """Persist the lazily observed expiry; losing this write to a concurrent answer is fine."""
    try:
        MoveRequest.objects.filter(
            id=offer.id, status=MoveRequestStatus.PENDING
        ).update(status=MoveRequestStatus.EXPIRED)
    except DatabaseError:
        logger.exception("Failed to mark request %s expired", offer.id)


def _claim(offer: MoveRequest, new_status: str, now) -> None:
    """Conditional write pending -> new_status; the first writer wins."""
    updated = MoveRequest.objects.filter(
        id=offer.id, status=MoveRequestStatus.PENDING
    ).update(status=new_status, responded_at=now)
    if not updated:
        raise RequestNotPendingError(request_id=str(offer.id))
    offer.status = new_status
    offer.responded_at = now


def decline_sibling_requests(move_id, exclude_request_id) -> int:
    """
    Close every other pending offer of a move after an accept.

    Offers already past their deadline become `expired`, the rest `declined`.

    Returns:
        Number of offers declined
    """
    now = timezone.now()
    siblings = MoveRequest.objects.filter(
        move_id=move_id, status=MoveRequestStatus.PENDING
    ).exclude(id=exclude_request_id)

    siblings.filter(expires_at__lt=now).update(status=MoveRequestStatus.EXPIRED)
    return siblings.update(status=MoveRequestStatus.DECLINED, responded_at=now)


# ===================== Mover Operations =====================

def accept(request_id, mover_profile_id) -> AcceptResult:
    """
    Accept an offer and bind the mover to the move.

    Args:
        request_id: MoveRequest ID
        mover_profile_id: Calling mover's profile ID

    Returns:
        AcceptResult with move_id and request_id

    Raises:
        NotFoundError: Request (or its move) does not exist
        ForbiddenError: Request belongs to another mover
        RequestNotPendingError: Request already answered
        OfferExpiredError: Request deadline passed
        MoveNotAssignableError: Move already taken or not waiting for a mover
        DependencyError: Store failure during the binding phase
    """
    now = timezone.now()
    offer = _get_request(request_id)
    _check_answerable(offer, mover_profile_id, now)

    try:
        move = Move.objects.get(id=offer.move_id)
    except Move.DoesNotExist:
        raise NotFoundError("Move not found", move_id=str(offer.move_id))

    if move.status not in ASSIGNABLE_STATUSES or move.mover_profile_id not in (None, mover_profile_id):
        raise MoveNotAssignableError(move_id=str(move.id), status=move.status)

    actor_id = offer.mover_profile.user_id
    note = f"Accepted move request {offer.id}"

    # Phase 1: binding
    outcomes = []
    try:
        with transaction.atomic():
            _claim(offer, MoveRequestStatus.ACCEPTED, now)

            if move.status == MoveStatus.PAID:
                outcomes.append(transition(
                    move, MoveStatus.MOVER_ASSIGNED, actor_id, note, mover_profile_id=mover_profile_id
                ))
            outcomes.append(transition(move, MoveStatus.MOVER_ACCEPTED, actor_id, note))
    except DatabaseError as exc:
        logger.exception("Failed to accept request %s", offer.id)
        raise DependencyError("Could not accept move request") from exc

    logger.info("Mover %s accepted move %s via request %s", mover_profile_id, move.id, offer.id)

    # Phase 2: cleanup
    declined = 0
    try:
        declined = decline_sibling_requests(move.id, offer.id)
    except Exception:
        logger.exception("Failed to decline sibling requests for move %s", move.id)

    from realtime.notifications import emit_notification
    for outcome in outcomes:
        try:
            emit_notification(outcome.notification)
        except Exception:
            logger.exception("Failed to emit notification for move %s", move.id)

    return AcceptResult(
        move_id=str(move.id),
        request_id=str(offer.id),
        move=move,
        siblings_declined=declined,
    )


def decline(request_id, mover_profile_id) -> None:
    """
    Decline an offer. The move is untouched and stays open for the other
    movers of the round (or a later round).
    """
    now = timezone.now()
    offer = _get_request(request_id)
    _check_answerable(offer, mover_profile_id, now)

    try:
        _claim(offer, MoveRequestStatus.DECLINED, now)
    except DatabaseError as exc:
        logger.exception("Failed to decline request %s", offer.id)
        raise DependencyError("Could not decline move request") from exc

    logger.info("Mover %s declined request %s for move %s", mover_profile_id, offer.id, offer.move_id)


# ===================== User-facing wrappers =====================

def get_mover_profile(user) -> MoverProfile:
    """Resolve the calling user's mover profile."""
    if getattr(user, "role", None) != "mover":
        raise ForbiddenError("Only movers allowed")
    try:
        return user.mover_profile
    except MoverProfile.DoesNotExist:
        raise NotFoundError("Mover profile not found")


def accept_move_request(request_id, user) -> AcceptResult:
    profile = get_mover_profile(user)
    return accept(request_id, profile.id)


def decline_move_request(request_id, user) -> None:
    profile = get_mover_profile(user)
    decline(request_id, profile.id)
