"""
Mover matching and offer dispatch service.

This module handles:
    - Ranking eligible movers around a pickup point (GeoMatcher)
    - Broadcasting time-boxed offers to them (one OfferSet per round)
    - Lazy expiry of offers past their deadline
"""

from .geo_matcher import Candidate, find_candidates
from .offer_set import OfferSet, expire_stale_requests
from .offer_dispatch import broadcast, broadcast_move

__all__ = [
    "Candidate",
    "find_candidates",
    "OfferSet",
    "expire_stale_requests",
    "broadcast",
    "broadcast_move",
]
