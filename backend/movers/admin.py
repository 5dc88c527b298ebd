from django.contrib import admin
from movers.models import MoverProfile


@admin.register(MoverProfile)
class MoverProfileAdmin(admin.ModelAdmin):
    """Admin panel for verifying and managing movers"""

    list_display = [
        "user",
        "vehicle_type",
        "verification_status",
        "is_online",
        "rating",
        "total_moves",
        "last_location_update",
    ]

    list_filter = [
        "verification_status",
        "is_online",
        "vehicle_type",
    ]

    search_fields = [
        "user__username",
        "vehicle_registration",
    ]

    readonly_fields = [
        "last_location_update",
        "total_moves",
    ]

    ordering = ("user__username",)
