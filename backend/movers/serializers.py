from rest_framework import serializers
from movers.models import MoverProfile
from accounts.serializers import UserSerializer


class MoverProfileSerializer(serializers.ModelSerializer):
    """
    Full mover profile serializer
    """
    user = UserSerializer(read_only=True)

    class Meta:
        model = MoverProfile
        fields = [
            "id",
            "user",
            "vehicle_type",
            "vehicle_registration",
            "verification_status",
            "is_online",
            "current_latitude",
            "current_longitude",
            "last_location_update",
            "rating",
            "total_moves",
        ]
        read_only_fields = [
            "id",
            "verification_status",
            "is_online",
            "current_latitude",
            "current_longitude",
            "last_location_update",
            "rating",
            "total_moves",
        ]


class MoverBasicSerializer(serializers.ModelSerializer):
    """
    Lite version of mover info embedded in move details
    (sent to clients once a mover is assigned).
    """
    username = serializers.CharField(source="user.username", read_only=True)
    phone_number = serializers.CharField(source="user.phone_number", read_only=True)

    class Meta:
        model = MoverProfile
        fields = [
            "id",
            "username",
            "phone_number",
            "vehicle_type",
            "rating",
        ]


class NearbyMoverSerializer(serializers.Serializer):
    """A mover near the requested point (no exact position is exposed)."""
    id = serializers.IntegerField(source="profile.id")
    username = serializers.CharField(source="profile.user.username")
    vehicle_type = serializers.CharField(source="profile.vehicle_type")
    rating = serializers.DecimalField(source="profile.rating", max_digits=3, decimal_places=2)
    distance_km = serializers.FloatField()


class MoverStatusSerializer(serializers.Serializer):
    """
    Serializer for toggling mover availability.
    """
    is_online = serializers.BooleanField()


class LocationUpdateSerializer(serializers.Serializer):
    """
    Serializer for updating mover GPS location.
    """
    latitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-90, max_value=90)
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, min_value=-180, max_value=180)


class NearbyQuerySerializer(serializers.Serializer):
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)
    radius_km = serializers.FloatField(required=False, min_value=0.1, max_value=100)
