from rest_framework import serializers

from accounts.serializers import UserBasicSerializer
from movers.serializers import MoverBasicSerializer
from .models import Move, MoveRequest, MoveStatus, MoveStatusHistory, Review


class MoveSerializer(serializers.ModelSerializer):
    """Serializer for Moves"""
    client = UserBasicSerializer(read_only=True)
    mover = MoverBasicSerializer(read_only=True, source='mover_profile')

    class Meta:
        model = Move
        fields = ['id', 'handle', 'client', 'mover', 'status', 'category', 'move_type',
                  'pickup_address', 'pickup_latitude', 'pickup_longitude',
                  'dropoff_address', 'dropoff_latitude', 'dropoff_longitude',
                  'move_date', 'arrival_window', 'estimated_price', 'final_price',
                  'contact_notes', 'created_at', 'updated_at', 'paid_at', 'completed_at']
        read_only_fields = fields


class MoveCreateSerializer(serializers.ModelSerializer):
    """Serializer for creating moves"""
    pickup_latitude = serializers.DecimalField(
        max_digits=9, decimal_places=6, min_value=-90, max_value=90, required=False, allow_null=True)
    pickup_longitude = serializers.DecimalField(
        max_digits=9, decimal_places=6, min_value=-180, max_value=180, required=False, allow_null=True)
    dropoff_latitude = serializers.DecimalField(
        max_digits=9, decimal_places=6, min_value=-90, max_value=90, required=False, allow_null=True)
    dropoff_longitude = serializers.DecimalField(
        max_digits=9, decimal_places=6, min_value=-180, max_value=180, required=False, allow_null=True)

    class Meta:
        model = Move
        fields = ['category', 'move_type',
                  'pickup_address', 'pickup_latitude', 'pickup_longitude',
                  'dropoff_address', 'dropoff_latitude', 'dropoff_longitude',
                  'move_date', 'arrival_window', 'estimated_price', 'contact_notes']


class MoveStatusUpdateSerializer(serializers.Serializer):
    """Serializer for a requested status change"""
    status = serializers.ChoiceField(choices=MoveStatus.choices)
    note = serializers.CharField(required=False, allow_blank=True)


class MoveStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = MoveStatusHistory
        fields = ['id', 'from_status', 'to_status', 'changed_by', 'changed_at', 'note']


class MoveRequestSerializer(serializers.ModelSerializer):
    """An offer as seen by the client (move offers listing)"""
    mover = MoverBasicSerializer(read_only=True, source='mover_profile')

    class Meta:
        model = MoveRequest
        fields = ['id', 'move', 'mover', 'dispatch_round', 'status', 'distance_km',
                  'sent_at', 'expires_at', 'responded_at']


class OpenMoveRequestSerializer(serializers.ModelSerializer):
    """An offer as seen by the mover it was sent to"""
    move_id = serializers.UUIDField(source='move.id', read_only=True)
    handle = serializers.CharField(source='move.handle', read_only=True)
    move_type = serializers.CharField(source='move.move_type', read_only=True)
    category = serializers.CharField(source='move.category', read_only=True)
    pickup_address = serializers.CharField(source='move.pickup_address', read_only=True)
    dropoff_address = serializers.CharField(source='move.dropoff_address', read_only=True)
    move_date = serializers.DateField(source='move.move_date', read_only=True)
    estimated_price = serializers.DecimalField(
        source='move.estimated_price', max_digits=10, decimal_places=2, read_only=True)

    class Meta:
        model = MoveRequest
        fields = ['id', 'move_id', 'handle', 'move_type', 'category',
                  'pickup_address', 'dropoff_address', 'move_date', 'estimated_price',
                  'distance_km', 'status', 'sent_at', 'expires_at']


class ReviewCreateSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    comment = serializers.CharField(required=False, allow_blank=True, max_length=1000)


class ReviewSerializer(serializers.ModelSerializer):
    reviewer = UserBasicSerializer(read_only=True)

    class Meta:
        model = Review
        fields = ['id', 'move', 'reviewer', 'mover_profile', 'rating', 'comment', 'created_at']
