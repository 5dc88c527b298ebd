"""
Walk one move through dispatch against the configured database.

    cd backend && python scripts/demo_move_dispatch.py

Creates demo users on first run, pays a fresh move, broadcasts it and lets
the closest mover accept.
"""

import os
import sys
from pathlib import Path

import django

BASE_DIR = Path(__file__).resolve().parent.parent
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "moving_backend.settings")
django.setup()

from django.utils import timezone  # noqa: E402
from accounts.models import User  # noqa: E402
from movers.models import MoverProfile, VerificationStatus  # noqa: E402
from moves.models import MoveStatus  # noqa: E402
from services.matching import broadcast  # noqa: E402
from services.move_management import accept, change_move_status, create_move  # noqa: E402


def ensure_client(username: str) -> User:
    user, created = User.objects.get_or_create(
        username=username,
        defaults={
            "role": "client",
            "phone_number": "9000000000",
            "email": f"{username}@example.com",
        },
    )
    if created:
        user.set_password("demo1234")
        user.save()
    return user


def ensure_mover(username: str, lat: float, lon: float) -> User:
    user, created = User.objects.get_or_create(
        username=username,
        defaults={
            "role": "mover",
            "phone_number": "9000011111",
            "email": f"{username}@example.com",
        },
    )
    if created:
        user.set_password("demo1234")
        user.save()

    MoverProfile.objects.update_or_create(
        user=user,
        defaults={
            "vehicle_type": "medium_truck",
            "verification_status": VerificationStatus.VERIFIED,
            "is_online": True,
            "current_latitude": lat,
            "current_longitude": lon,
            "last_location_update": timezone.now(),
        },
    )
    return user


def main():
    client = ensure_client("dispatch_demo_client")
    ensure_mover("dispatch_mover_one", 28.6145, 77.2050)
    ensure_mover("dispatch_mover_two", 28.6100, 77.2100)
    ensure_mover("dispatch_mover_far", 28.9000, 77.5000)

    move = create_move(
        client,
        pickup_address="Connaught Place",
        pickup_latitude=28.6139,
        pickup_longitude=77.2090,
        dropoff_address="India Gate",
    )
    change_move_status(move.id, MoveStatus.PENDING_PAYMENT, client)
    change_move_status(move.id, MoveStatus.PAID, client)
    move.refresh_from_db()
    print(f"Move {move.handle} is {move.status}")

    offers = broadcast(move)
    print(f"Sent {len(offers)} move requests (far mover should be skipped).")
    for request in offers:
        print(f"  mover={request.mover_profile_id} distance={offers.distances_km[request.mover_profile_id]}km")

    if offers.is_empty:
        print("Nobody in range. Check mover positions and MOVER_SEARCH_RADIUS_KM.")
        return

    first = offers.requests[0]
    result = accept(first.id, first.mover_profile_id)
    move.refresh_from_db()
    print(f"Mover {first.mover_profile_id} accepted; move {result.move_id} is now {move.status}")

    for request in offers.refresh():
        print(f"  request {request.id} -> {request.status}")


if __name__ == "__main__":
    main()
