"""
Offer sets: the MoveRequests created by one dispatch round.

Expiry is passive. Nothing expires an offer on a timer; readers that see a
pending offer past its deadline treat it as expired and persist the
`expired` status lazily via expire_stale_requests().
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional

from django.utils import timezone

from moves.models import MoveRequest, MoveRequestStatus

logger = logging.getLogger(__name__)


def expire_stale_requests(queryset=None, now: Optional[datetime] = None) -> int:
    """
    Persist `expired` on pending requests whose deadline has passed.

    Conditional on status=pending, so an offer answered concurrently is never
    overwritten.

    Returns:
        Number of requests marked expired
    """
    now = now or timezone.now()
    if queryset is None:
        queryset = MoveRequest.objects.all()

    expired = queryset.filter(
        status=MoveRequestStatus.PENDING,
        expires_at__lt=now,
    ).update(status=MoveRequestStatus.EXPIRED)

    if expired:
        logger.info("Lazily expired %d stale move request(s)", expired)
    return expired


@dataclass
class OfferSet:
    """Time-boxed offers sent for one move in one broadcast round."""
    move_id: uuid.UUID
    dispatch_round: Optional[uuid.UUID] = None
    requests: List[MoveRequest] = field(default_factory=list)
    # Candidate distances as reported to the caller (rounded)
    distances_km: dict = field(default_factory=dict)

    @classmethod
    def empty(cls, move_id) -> "OfferSet":
        return cls(move_id=move_id)

    @classmethod
    def load(cls, move_id, dispatch_round) -> "OfferSet":
        requests = list(
            MoveRequest.objects.filter(move_id=move_id, dispatch_round=dispatch_round)
            .order_by("distance_km", "id")
        )
        return cls(
            move_id=move_id,
            dispatch_round=dispatch_round,
            requests=requests,
            distances_km={r.mover_profile_id: round(r.distance_km, 1) for r in requests if r.distance_km is not None},
        )

    @classmethod
    def latest(cls, move_id) -> "OfferSet":
        """Most recent round for a move (empty when the move was never broadcast)."""
        last = (
            MoveRequest.objects.filter(move_id=move_id)
            .order_by("-sent_at")
            .values_list("dispatch_round", flat=True)
            .first()
        )
        if last is None:
            return cls.empty(move_id)
        return cls.load(move_id, last)

    def __len__(self) -> int:
        return len(self.requests)

    def __iter__(self) -> Iterator[MoveRequest]:
        return iter(self.requests)

    @property
    def is_empty(self) -> bool:
        return not self.requests

    @property
    def sent_at(self) -> Optional[datetime]:
        return min((r.sent_at for r in self.requests), default=None)

    @property
    def expires_at(self) -> Optional[datetime]:
        return max((r.expires_at for r in self.requests), default=None)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True once every offer in the round is past its deadline."""
        if self.is_empty:
            return True
        now = now or timezone.now()
        return now > self.expires_at

    def live_requests(self, now: Optional[datetime] = None) -> List[MoveRequest]:
        """Offers still answerable: pending and not past their deadline."""
        now = now or timezone.now()
        return [r for r in self.requests if r.is_live(now)]

    def accepted_request(self) -> Optional[MoveRequest]:
        return next((r for r in self.requests if r.status == MoveRequestStatus.ACCEPTED), None)

    def is_settled(self, now: Optional[datetime] = None) -> bool:
        """A round is settled once a mover accepted or nobody can answer anymore."""
        return self.accepted_request() is not None or not self.live_requests(now)

    def refresh(self) -> "OfferSet":
        """Re-read the round's requests from the store."""
        if self.dispatch_round is not None:
            self.requests = OfferSet.load(self.move_id, self.dispatch_round).requests
        return self
