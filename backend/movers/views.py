from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated

from common.permissions import IsClient, IsMover
from movers.serializers import (
    MoverProfileSerializer,
    MoverStatusSerializer,
    LocationUpdateSerializer,
    NearbyMoverSerializer,
    NearbyQuerySerializer,
)
from moves.serializers import MoveSerializer, OpenMoveRequestSerializer
from services.exceptions import MoveServiceError
from services.move_management import (
    accept_move_request,
    decline_move_request,
    get_current_mover_move,
)

from movers import services


def error_response(exc: MoveServiceError):
    return Response(exc.as_dict(), status=exc.status_code)


class MoverAPIView(APIView):
    """Base view for mover endpoints: resolves the caller's profile, renders service errors."""
    permission_classes = [IsAuthenticated, IsMover]

    def handle_exception(self, exc):
        if isinstance(exc, MoveServiceError):
            return error_response(exc)
        return super().handle_exception(exc)

    def get_profile(self, request):
        return services.get_mover_profile(request.user)


class MoverProfileView(MoverAPIView):

    def get(self, request):
        profile = self.get_profile(request)
        serializer = MoverProfileSerializer(profile, context={"request": request})
        return Response(serializer.data)

    def post(self, request):
        profile = self.get_profile(request)

        serializer = MoverProfileSerializer(profile, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()

        return Response(serializer.data, status=200)


class MoverStatusView(MoverAPIView):

    def get(self, request):
        profile = self.get_profile(request)
        return Response({
            "is_online": profile.is_online,
            "verification_status": profile.verification_status,
        })

    def put(self, request):
        profile = self.get_profile(request)

        serializer = MoverStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        is_online = serializer.validated_data["is_online"]

        services.set_mover_online(profile, is_online)

        return Response({
            "message": f"You are now {'online' if is_online else 'offline'}",
            "is_online": is_online,
        })


class MoverLocationUpdateView(MoverAPIView):

    def get(self, request):
        profile = self.get_profile(request)

        return Response({
            "latitude": float(profile.current_latitude) if profile.has_position else None,
            "longitude": float(profile.current_longitude) if profile.has_position else None,
            "last_updated": profile.last_location_update,
            "is_online": profile.is_online,
        })

    def post(self, request):
        profile = self.get_profile(request)

        serializer = LocationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        lat = serializer.validated_data["latitude"]
        lon = serializer.validated_data["longitude"]

        services.update_mover_location(profile, lat, lon)

        return Response({
            "message": "Location updated",
            "latitude": float(lat),
            "longitude": float(lon),
            "is_online": profile.is_online,
        })


class OpenMoveRequestsView(MoverAPIView):

    def get(self, request):
        profile = self.get_profile(request)

        if not profile.is_online:
            return Response({
                "requests": [],
                "count": 0,
                "message": "Go online to receive move requests.",
            })

        offers = services.list_open_requests(profile)
        serialized = OpenMoveRequestSerializer(offers, many=True)

        return Response({"requests": serialized.data, "count": len(serialized.data)})


class AcceptMoveRequestView(MoverAPIView):

    def post(self, request, request_id):
        result = accept_move_request(request_id, request.user)
        return Response({
            "success": True,
            "message": "Move accepted",
            **result.as_dict(),
            "move": MoveSerializer(result.move).data,
        })


class DeclineMoveRequestView(MoverAPIView):

    def post(self, request, request_id):
        decline_move_request(request_id, request.user)
        return Response({"success": True, "message": "Move request declined", "request_id": str(request_id)})


class MoverCurrentMoveView(MoverAPIView):

    def get(self, request):
        profile = self.get_profile(request)

        move = get_current_mover_move(profile)
        if not move:
            return Response({"message": "No active move"}, status=404)

        serializer = MoveSerializer(move, context={"request": request})
        return Response(serializer.data)


class NearbyMoversView(MoverAPIView):
    """Client view: verified, online movers around a point."""
    permission_classes = [IsAuthenticated, IsClient]

    def get(self, request):
        query = NearbyQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        nearby = services.find_nearby_movers(
            query.validated_data["lat"],
            query.validated_data["lng"],
            query.validated_data.get("radius_km"),
        )
        serialized = NearbyMoverSerializer(
            [{"profile": profile, "distance_km": distance} for profile, distance in nearby],
            many=True,
        )
        return Response({"movers": serialized.data, "count": len(serialized.data)})
