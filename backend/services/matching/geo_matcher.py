"""
Find movers eligible for a move near a pickup point.

Candidates are verified, online movers with a known position inside the
search radius, ranked closest first.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from common.conf import get_setting
from common.utils import Coordinate, distance_between
from movers.models import MoverProfile, VerificationStatus
from services.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    """One eligible mover and its raw great-circle distance to the pickup."""
    mover_profile_id: int
    distance_km: float

    @property
    def display_distance_km(self) -> float:
        return round(self.distance_km, 1)


def eligible_movers():
    """Verified, online movers with a last known position (bounded page)."""
    pool_size = get_setting("MOVER_CANDIDATE_POOL_SIZE")
    return (
        MoverProfile.objects
        .filter(
            verification_status=VerificationStatus.VERIFIED,
            is_online=True,
            current_latitude__isnull=False,
            current_longitude__isnull=False,
        )
        .order_by("-last_location_update")
        .only("id", "current_latitude", "current_longitude")[:pool_size]
    )


def find_candidates(
    pickup: Coordinate,
    max_results: Optional[int] = None,
    radius_km: Optional[float] = None,
) -> List[Candidate]:
    """
    Rank eligible movers around a pickup point.

    Args:
        pickup: Pickup coordinate
        max_results: Maximum candidates returned (default MAX_MOVERS_PER_BROADCAST)
        radius_km: Cutoff distance in km (default MOVER_SEARCH_RADIUS_KM)

    Returns:
        Candidates sorted by non-decreasing distance; empty when nobody is in range
    """
    if max_results is None:
        max_results = get_setting("MAX_MOVERS_PER_BROADCAST")
    if radius_km is None:
        radius_km = get_setting("MOVER_SEARCH_RADIUS_KM")

    if max_results < 1:
        raise ValidationError("max_results must be at least 1", max_results=max_results)
    if radius_km <= 0:
        raise ValidationError("radius_km must be positive", radius_km=radius_km)

    try:
        pickup = Coordinate.from_values(*pickup)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid pickup coordinate: {exc}") from exc

    candidates: List[Candidate] = []
    for profile in eligible_movers():
        if not profile.has_position:
            continue
        distance = distance_between(
            pickup,
            Coordinate(float(profile.current_latitude), float(profile.current_longitude)),
        )
        # Cutoff on the raw value; rounding is for display only
        if distance <= radius_km:
            candidates.append(Candidate(profile.id, distance))

    candidates.sort(key=lambda c: (c.distance_km, c.mover_profile_id))
    candidates = candidates[:max_results]

    logger.debug(
        "Found %d candidate movers around (%.5f, %.5f) radius=%skm",
        len(candidates), pickup.latitude, pickup.longitude, radius_km,
    )
    return candidates
