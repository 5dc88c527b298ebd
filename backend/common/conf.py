"""
Dispatch configuration.

Usage in settings.py (all optional):
    MOVE_REQUEST_TIMEOUT_SECONDS = 60
    MOVER_SEARCH_RADIUS_KM = 15
    MAX_MOVERS_PER_BROADCAST = 10
    MOVER_CANDIDATE_POOL_SIZE = 100
    OPEN_REQUESTS_PAGE_SIZE = 50
"""

from django.conf import settings

DEFAULTS = {
    # How long a mover has to answer an offer
    "MOVE_REQUEST_TIMEOUT_SECONDS": 60,
    # Movers farther than this from the pickup are never offered the move
    "MOVER_SEARCH_RADIUS_KM": 15.0,
    # Offers created per broadcast round
    "MAX_MOVERS_PER_BROADCAST": 10,
    # Eligible movers loaded before distance filtering
    "MOVER_CANDIDATE_POOL_SIZE": 100,
    # Open offers returned to a mover
    "OPEN_REQUESTS_PAGE_SIZE": 50,
}


def get_setting(name: str):
    """Read a dispatch setting, falling back to the default. Re-read on every call."""
    if name not in DEFAULTS:
        raise KeyError(f"Unknown dispatch setting: {name}")
    return getattr(settings, name, DEFAULTS[name])
