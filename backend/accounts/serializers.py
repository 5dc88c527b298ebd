from rest_framework import serializers

from .models import User


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "role",
            "phone_number",
        ]
        read_only_fields = ["id", "role"]


class UserBasicSerializer(serializers.ModelSerializer):
    """Lite version of user info embedded in move payloads."""

    class Meta:
        model = User
        fields = ["id", "username", "phone_number"]
