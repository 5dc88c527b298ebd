from django.utils import timezone

from common.conf import get_setting
from common.utils import Coordinate
from movers.models import MoverProfile
from moves.models import MoveRequest, MoveRequestStatus
from services.exceptions import ValidationError
from services.matching import expire_stale_requests, find_candidates
from services.move_management.arbitration import get_mover_profile  # noqa: F401


# MOVER AVAILABILITY
def set_mover_online(profile: MoverProfile, is_online: bool):
    """
    Toggle whether the mover receives move requests.
    Only verified movers are ever matched, whatever this flag says.
    """
    profile.is_online = is_online
    profile.save(update_fields=["is_online"])
    return profile


def update_mover_location(profile: MoverProfile, lat, lon):
    """
    Record the mover's last known position (geolocation feed).
    """
    try:
        Coordinate.from_values(lat, lon)
    except (TypeError, ValueError) as exc:
        raise ValidationError(str(exc))

    profile.current_latitude = lat
    profile.current_longitude = lon
    profile.last_location_update = timezone.now()
    profile.save(update_fields=["current_latitude", "current_longitude", "last_location_update"])
    return profile


# OPEN OFFERS
def list_open_requests(profile: MoverProfile):
    """
    Pending, unexpired requests addressed to this mover, newest first.
    Stale ones are marked expired before listing.
    """
    now = timezone.now()
    mine = MoveRequest.objects.filter(mover_profile=profile)
    expire_stale_requests(mine, now)

    page_size = get_setting("OPEN_REQUESTS_PAGE_SIZE")
    return list(
        mine.filter(status=MoveRequestStatus.PENDING, expires_at__gte=now)
        .select_related("move")
        .order_by("-sent_at")[:page_size]
    )


# MOVERS NEAR A POINT
def find_nearby_movers(lat, lon, radius_km=None):
    """
    Eligible movers around a point, closest first (client "movers near me").
    Returns (profile, distance_km) pairs.
    """
    try:
        point = Coordinate.from_values(lat, lon)
    except (TypeError, ValueError) as exc:
        raise ValidationError(str(exc))

    candidates = find_candidates(point, radius_km=radius_km)
    profiles = MoverProfile.objects.select_related("user").in_bulk(
        [c.mover_profile_id for c in candidates]
    )
    return [
        (profiles[c.mover_profile_id], c.display_distance_km)
        for c in candidates
        if c.mover_profile_id in profiles
    ]
