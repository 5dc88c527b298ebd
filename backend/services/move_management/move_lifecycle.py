"""
Core move lifecycle operations.

Creation, actor-checked status changes, reviews and read queries for moves. Every
status write is delegated to the state machine; this module only decides
who may ask for it.
"""

import logging
import random
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Avg, Q
from django.utils import timezone

from common.utils import Coordinate
from movers.models import MoverProfile
from moves.models import Move, MoveStatus, MoveStatusHistory, Review
from services.exceptions import (
    AlreadyReviewedError,
    ConflictError,
    DependencyError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from .state_machine import ASSIGNED_STATUSES, transition

logger = logging.getLogger(__name__)

HANDLE_ATTEMPTS = 5

# Fields a client may set when creating a move
CREATE_FIELDS = (
    "category",
    "move_type",
    "pickup_address",
    "pickup_latitude",
    "pickup_longitude",
    "dropoff_address",
    "dropoff_latitude",
    "dropoff_longitude",
    "move_date",
    "arrival_window",
    "estimated_price",
    "contact_notes",
)


def generate_handle(year: Optional[int] = None) -> str:
    """Human-readable move reference, e.g. MV-2026-048213."""
    year = year or timezone.now().year
    return f"MV-{year}-{random.randint(0, 999999):06d}"


def _validate_coordinates(fields: dict, prefix: str) -> None:
    lat = fields.get(f"{prefix}_latitude")
    lon = fields.get(f"{prefix}_longitude")
    if lat is None and lon is None:
        return
    if lat is None or lon is None:
        raise ValidationError(f"Both {prefix} latitude and longitude are required")
    try:
        Coordinate.from_values(lat, lon)
    except ValueError as exc:
        raise ValidationError(str(exc), field=prefix)


def get_move(move_id) -> Move:
    try:
        return Move.objects.get(id=move_id)
    except (Move.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFoundError("Move not found", move_id=str(move_id))


# ===================== Client Operations =====================

def create_move(client, **fields) -> Move:
    """
    Create a draft move for a client.

    Args:
        client: User model instance (client role)
        **fields: Move attributes (see CREATE_FIELDS)

    Returns:
        The created Move

    Raises:
        ForbiddenError: Caller is not a client
        ValidationError: Unknown field or invalid coordinates
        DependencyError: Store failure
    """
    if getattr(client, "role", None) != "client":
        raise ForbiddenError("Only clients can create moves")

    unknown = set(fields) - set(CREATE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown move fields: {', '.join(sorted(unknown))}")

    _validate_coordinates(fields, "pickup")
    _validate_coordinates(fields, "dropoff")

    for attempt in range(HANDLE_ATTEMPTS):
        handle = generate_handle()
        try:
            with transaction.atomic():
                move = Move.objects.create(
                    client=client,
                    handle=handle,
                    status=MoveStatus.DRAFT,
                    **fields,
                )
                MoveStatusHistory.objects.create(
                    move=move,
                    from_status="",
                    to_status=MoveStatus.DRAFT,
                    changed_by=str(client.id),
                    changed_at=move.created_at,
                    note="Move created",
                )
        except IntegrityError:
            if Move.objects.filter(handle=handle).exists():
                logger.warning("Handle collision on %s (attempt %d)", handle, attempt + 1)
                continue
            logger.exception("Failed to create move for client %s", client.id)
            raise DependencyError("Could not create move")
        except DatabaseError as exc:
            logger.exception("Failed to create move for client %s", client.id)
            raise DependencyError("Could not create move") from exc

        logger.info("Move %s (%s) created by client %s", move.id, move.handle, client.id)
        return move

    raise DependencyError("Could not allocate a unique move handle")


# ===================== Status Changes =====================

def _check_actor(move: Move, to_status, actor) -> None:
    """Who may request which status change."""
    if actor.is_staff:
        return

    is_client = move.client_id == actor.id
    is_mover = (
        move.mover_profile_id is not None
        and move.mover_profile.user_id == actor.id
    )

    if not (is_client or is_mover):
        raise ForbiddenError("You are not a party to this move", move_id=str(move.id))

    if to_status == MoveStatus.CANCELLED_BY_CLIENT and not is_client:
        raise ForbiddenError("Only the client can cancel as client", move_id=str(move.id))

    if to_status == MoveStatus.CANCELLED_BY_MOVER and not is_mover:
        raise ForbiddenError("Only the assigned mover can cancel as mover", move_id=str(move.id))


def change_move_status(move_id, to_status, actor, note: Optional[str] = None):
    """
    Move a move to `to_status` on behalf of a user.

    Reads the move fresh, checks the actor is allowed to ask for the change
    and hands it to the state machine. The client notification is sent after
    the write; a delivery failure does not undo the change.

    Returns:
        TransitionOutcome from the state machine
    """
    try:
        move = Move.objects.select_related("mover_profile").get(id=move_id)
    except (Move.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFoundError("Move not found", move_id=str(move_id))

    _check_actor(move, to_status, actor)

    outcome = transition(move, to_status, actor.id, note)

    if outcome.notification is not None:
        from realtime.notifications import emit_notification
        try:
            emit_notification(outcome.notification)
        except Exception:
            logger.exception("Failed to emit notification for move %s", move.id)

    return outcome


# ===================== Reviews =====================

def _recompute_rating(mover_profile_id) -> Decimal:
    """Average of all the mover's reviews, rounded half-up to one decimal."""
    average = Review.objects.filter(mover_profile_id=mover_profile_id).aggregate(avg=Avg("rating"))["avg"]
    rating = Decimal(str(average)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    MoverProfile.objects.filter(id=mover_profile_id).update(rating=rating)
    return rating


def submit_review(move_id, reviewer, rating, comment: str = "") -> Review:
    """
    Let the client rate the mover of a completed move.

    One review per reviewer and move. The mover's average rating is
    recomputed in the same transaction; the mover is notified afterwards.

    Returns:
        The created Review (review.mover_profile.rating holds the new average)

    Raises:
        NotFoundError: Move does not exist
        ForbiddenError: Caller is not the move's client
        ValidationError: Rating outside 1..5
        ConflictError: Move is not completed
        AlreadyReviewedError: Caller already reviewed this move
        DependencyError: Store failure
    """
    try:
        move = Move.objects.select_related("mover_profile").get(id=move_id)
    except (Move.DoesNotExist, ValueError, DjangoValidationError):
        raise NotFoundError("Move not found", move_id=str(move_id))

    if move.client_id != reviewer.id:
        raise ForbiddenError("Only the client of this move can review it", move_id=str(move.id))

    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5", field="rating")

    if move.status != MoveStatus.COMPLETED or move.mover_profile_id is None:
        raise ConflictError(
            "Only completed moves can be reviewed",
            move_id=str(move.id),
            status=move.status,
        )

    comment = comment or ""
    try:
        with transaction.atomic():
            if Review.objects.filter(move=move, reviewer=reviewer).exists():
                raise AlreadyReviewedError(move_id=str(move.id))
            review = Review.objects.create(
                move=move,
                reviewer=reviewer,
                mover_profile_id=move.mover_profile_id,
                rating=rating,
                comment=comment,
            )
            new_rating = _recompute_rating(move.mover_profile_id)
    except IntegrityError:
        raise AlreadyReviewedError(move_id=str(move.id))
    except DatabaseError as exc:
        logger.exception("Failed to store review for move %s", move.id)
        raise DependencyError("Could not submit review") from exc

    move.mover_profile.rating = new_rating
    review.mover_profile = move.mover_profile
    logger.info("Review %s: %s stars for mover %s (avg %s)", review.id, rating, move.mover_profile_id, new_rating)

    if comment:
        body = f'You received a {rating}-star review: "{comment[:100]}"'
    else:
        body = f"You received a {rating}-star review."

    from realtime.notifications import send_notification
    try:
        send_notification(
            move.mover_profile.user_id,
            "review",
            "New Review",
            body,
            {"review_id": review.id, "move_id": str(move.id), "rating": rating},
        )
    except Exception:
        logger.exception("Failed to notify mover about review %s", review.id)

    return review


# ===================== Queries =====================

def get_move_history(move_id) -> List[MoveStatusHistory]:
    """History entries in the order they were accepted."""
    return list(MoveStatusHistory.objects.filter(move_id=move_id).order_by("id"))


def get_moves_for_user(user):
    """Moves the user is a party to (all moves for staff), newest first."""
    queryset = Move.objects.select_related("client", "mover_profile__user")
    if user.is_staff:
        return queryset
    return queryset.filter(Q(client=user) | Q(mover_profile__user=user))


def get_current_mover_move(profile) -> Optional[Move]:
    """The mover's in-progress move, if any."""
    return (
        Move.objects.filter(mover_profile=profile, status__in=ASSIGNED_STATUSES)
        .exclude(status__in=[MoveStatus.COMPLETED, MoveStatus.DISPUTED])
        .select_related("client")
        .order_by("-updated_at")
        .first()
    )
