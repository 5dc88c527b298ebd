"""Shared object builders for the move tests."""

import uuid
from datetime import timedelta
from itertools import count

from django.utils import timezone

from accounts.models import User
from movers.models import MoverProfile, VerificationStatus
from moves.models import Move, MoveRequest, MoveRequestStatus, MoveStatus

# Connaught Place, New Delhi
PICKUP = (28.6139, 77.2090)

# Roughly 1 km of latitude
KM_LAT = 1 / 111.195

_handles = count(1)


def make_client(username='client', **extra):
	return User.objects.create_user(
		username=username,
		password='pass1234',
		role='client',
		phone_number='9000000000',
		**extra
	)


def make_mover(username, km_north=1.0, verified=True, online=True, position=True):
	"""Mover placed `km_north` kilometres north of PICKUP."""
	user = User.objects.create_user(
		username=username,
		password='mover1234',
		role='mover',
		phone_number='9000000001'
	)
	MoverProfile.objects.create(
		user=user,
		vehicle_type='medium_truck',
		verification_status=VerificationStatus.VERIFIED if verified else VerificationStatus.PENDING_VERIFICATION,
		is_online=online,
		current_latitude=round(PICKUP[0] + km_north * KM_LAT, 6) if position else None,
		current_longitude=PICKUP[1] if position else None,
	)
	return user


def make_move(client, status=MoveStatus.PAID, pickup=PICKUP, **extra):
	lat, lon = pickup if pickup else (None, None)
	return Move.objects.create(
		client=client,
		handle=f'MV-2026-{next(_handles):06d}',
		status=status,
		pickup_address='Connaught Place',
		pickup_latitude=lat,
		pickup_longitude=lon,
		dropoff_address='India Gate',
		**extra
	)


def make_request(move, mover, seconds_left=60, status=MoveRequestStatus.PENDING, dispatch_round=None):
	now = timezone.now()
	return MoveRequest.objects.create(
		move=move,
		mover_profile=mover.mover_profile,
		dispatch_round=dispatch_round or uuid.uuid4(),
		status=status,
		distance_km=1.0,
		sent_at=now - timedelta(seconds=60 - seconds_left),
		expires_at=now + timedelta(seconds=seconds_left),
	)
