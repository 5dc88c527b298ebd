"""
Broadcast a move to nearby movers.

One broadcast is one dispatch round:
1. Rank eligible movers around the pickup (GeoMatcher)
2. Create one pending, time-boxed MoveRequest per candidate
3. Return the round as an OfferSet

The engine never retries by itself and never touches the move status;
a new round is only created when the caller explicitly broadcasts again
after the previous round settled without an acceptance.
"""

import logging
import uuid
from datetime import timedelta

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from common.conf import get_setting
from common.utils import Coordinate
from moves.models import Move, MoveRequest, MoveRequestStatus, MoveStatus
from services.exceptions import (
    ConflictError,
    DependencyError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from services.move_management.arbitration import ASSIGNABLE_STATUSES
from .geo_matcher import find_candidates
from .offer_set import OfferSet, expire_stale_requests

logger = logging.getLogger(__name__)

# Statuses after which a move can no longer be offered to movers
NOT_DISPATCHABLE = {
    MoveStatus.COMPLETED,
    MoveStatus.DISPUTED,
    MoveStatus.CANCELLED_BY_CLIENT,
    MoveStatus.CANCELLED_BY_MOVER,
}


def _lock_move(move_id) -> Move:
    """Re-read the move under a row lock held until the round is written."""
    try:
        return Move.objects.select_for_update().get(id=move_id)
    except Move.DoesNotExist:
        raise NotFoundError("Move not found", move_id=str(move_id))


def _check_dispatchable(move: Move):
    if not move.has_pickup:
        raise ValidationError("Move has no pickup coordinates", move_id=str(move.id))

    if move.mover_profile_id is not None:
        raise ConflictError("Move already has a mover", move_id=str(move.id))

    if move.status in NOT_DISPATCHABLE:
        raise ConflictError(
            f"Move is {move.status} and cannot be offered to movers",
            move_id=str(move.id),
            status=move.status,
        )

    # Offers are only answerable once the move is paid
    if move.status not in ASSIGNABLE_STATUSES:
        raise ConflictError(
            "Move must be paid before it can be offered to movers",
            move_id=str(move.id),
            status=move.status,
        )

    # Stale pending offers are expired first so they don't block a retry
    expire_stale_requests(MoveRequest.objects.filter(move_id=move.id))
    if MoveRequest.objects.filter(move_id=move.id, status=MoveRequestStatus.PENDING).exists():
        raise ConflictError(
            "A previous broadcast for this move is still awaiting answers",
            move_id=str(move.id),
        )


def broadcast(move: Move) -> OfferSet:
    """
    Run one dispatch round for a move.

    The move row is locked for the whole round, so two concurrent broadcasts
    of the same move are serialized and the second one sees the first
    round's pending offers.

    Args:
        move: Move instance; checks run against the stored row, not this copy

    Returns:
        OfferSet of the created requests; empty when no mover is in range

    Raises:
        ValidationError: Move has no pickup coordinates
        ConflictError: Move is not paid, already has a mover, is finished,
            or a round is still live
        DependencyError: Store failure while creating the requests
    """
    requests = []
    try:
        with transaction.atomic():
            move = _lock_move(move.id)
            _check_dispatchable(move)

            pickup = Coordinate.from_values(move.pickup_latitude, move.pickup_longitude)
            candidates = find_candidates(pickup)

            if not candidates:
                logger.info("No nearby movers found for move %s", move.id)
                return OfferSet.empty(move.id)

            now = timezone.now()
            expires_at = now + timedelta(seconds=get_setting("MOVE_REQUEST_TIMEOUT_SECONDS"))
            dispatch_round = uuid.uuid4()

            for candidate in candidates:
                requests.append(MoveRequest.objects.create(
                    move=move,
                    mover_profile_id=candidate.mover_profile_id,
                    dispatch_round=dispatch_round,
                    status=MoveRequestStatus.PENDING,
                    distance_km=candidate.distance_km,
                    sent_at=now,
                    expires_at=expires_at,
                ))
    except DatabaseError as exc:
        logger.exception("Failed to create move requests for move %s", move.id)
        raise DependencyError("Could not create move requests") from exc

    logger.info(
        "Broadcast %d move requests for move %s (round=%s, expires=%s)",
        len(requests), move.id, dispatch_round, expires_at.isoformat(),
    )

    return OfferSet(
        move_id=move.id,
        dispatch_round=dispatch_round,
        requests=requests,
        distances_km={c.mover_profile_id: c.display_distance_km for c in candidates},
    )


def broadcast_move(move_id, actor) -> OfferSet:
    """Broadcast on behalf of a user (the move's client or staff)."""
    try:
        move = Move.objects.get(id=move_id)
    except (Move.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFoundError("Move not found", move_id=str(move_id))

    if not (actor.is_staff or move.client_id == actor.id):
        raise ForbiddenError("Only the client who created this move can broadcast it")

    return broadcast(move)
