import logging

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from .models import MoveRequest
from .serializers import (
    MoveSerializer,
    MoveCreateSerializer,
    MoveStatusUpdateSerializer,
    MoveStatusHistorySerializer,
    MoveRequestSerializer,
    ReviewCreateSerializer,
    ReviewSerializer,
)

# Import from services layer
from services.exceptions import ForbiddenError, MoveServiceError
from services.matching import broadcast_move, expire_stale_requests
from services.move_management import (
    create_move,
    change_move_status,
    get_move,
    submit_review,
    get_move_history,
    get_moves_for_user,
)

logger = logging.getLogger(__name__)


def error_response(exc: MoveServiceError):
    return Response(exc.as_dict(), status=exc.status_code)


def get_visible_move(move_id, user):
    """Move the user is a party to (or any move for staff)."""
    move = get_move(move_id)
    is_mover = move.mover_profile_id is not None and move.mover_profile.user_id == user.id
    if not (user.is_staff or move.client_id == user.id or is_mover):
        raise ForbiddenError("You are not a party to this move", move_id=str(move.id))
    return move


# ==================== Client Move APIs ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def move_list(request):
    """
    GET: moves the caller is a party to, newest first
    POST: create a draft move (clients only)
    """
    if request.method == 'GET':
        moves = get_moves_for_user(request.user)
        serializer = MoveSerializer(moves, many=True, context={'request': request})
        return Response({'count': len(serializer.data), 'moves': serializer.data})

    serializer = MoveCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        move = create_move(request.user, **serializer.validated_data)
    except MoveServiceError as e:
        return error_response(e)

    return Response(MoveSerializer(move).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def move_detail(request, move_id):
    try:
        move = get_visible_move(move_id, request.user)
    except MoveServiceError as e:
        return error_response(e)

    return Response(MoveSerializer(move, context={'request': request}).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def broadcast_move_request(request, move_id):
    """
    Offer the move to nearby movers (one dispatch round).

    Called by the client once the move is paid, and again manually
    after a round expired or was declined by everyone.
    """
    try:
        offers = broadcast_move(move_id, request.user)
    except MoveServiceError as e:
        return error_response(e)

    if offers.is_empty:
        message = 'No available movers found nearby. Please try again later.'
    else:
        message = f'Move request sent to {len(offers)} mover(s)'

    return Response({
        'requests_sent': len(offers),
        'movers_notified': [
            {'id': r.mover_profile_id, 'distance_km': offers.distances_km.get(r.mover_profile_id)}
            for r in offers
        ],
        'dispatch_round': str(offers.dispatch_round) if offers.dispatch_round else None,
        'expires_at': offers.expires_at.isoformat() if offers.expires_at else None,
        'message': message,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def update_move_status(request, move_id):
    """
    Request a status change (client, assigned mover or staff).

    Body: {"status": "<target>", "note": "..."}
    """
    serializer = MoveStatusUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        outcome = change_move_status(
            move_id,
            serializer.validated_data['status'],
            request.user,
            serializer.validated_data.get('note') or None,
        )
    except MoveServiceError as e:
        return error_response(e)

    return Response({
        'success': True,
        'previous_status': outcome.previous_status,
        'new_status': outcome.move.status,
        'move': MoveSerializer(outcome.move).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def move_history(request, move_id):
    try:
        move = get_visible_move(move_id, request.user)
    except MoveServiceError as e:
        return error_response(e)

    entries = get_move_history(move.id)
    return Response({
        'move_id': str(move.id),
        'history': MoveStatusHistorySerializer(entries, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def move_offers(request, move_id):
    """All move requests sent for a move, across rounds (stale ones shown as expired)."""
    try:
        move = get_visible_move(move_id, request.user)
    except MoveServiceError as e:
        return error_response(e)

    offers = MoveRequest.objects.filter(move=move)
    expire_stale_requests(offers)

    serializer = MoveRequestSerializer(offers.select_related('mover_profile__user'), many=True)
    return Response({'count': len(serializer.data), 'requests': serializer.data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def submit_move_review(request, move_id):
    """
    Client rates the mover once the move is completed.

    Body: {"rating": 1-5, "comment": "..."}
    """
    serializer = ReviewCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        review = submit_review(
            move_id,
            request.user,
            serializer.validated_data['rating'],
            serializer.validated_data.get('comment', ''),
        )
    except MoveServiceError as e:
        return error_response(e)

    return Response({
        'success': True,
        'review': ReviewSerializer(review).data,
        'new_average_rating': float(review.mover_profile.rating),
    }, status=status.HTTP_201_CREATED)
