"""Tells what to show in the Django admin interface for moves app"""

from django.contrib import admin
from .models import Move, MoveRequest, MoveStatusHistory, Review


class MoveStatusHistoryInline(admin.TabularInline):
    model = MoveStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ['from_status', 'to_status', 'changed_by', 'changed_at', 'note']

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Move)
class MoveAdmin(admin.ModelAdmin):
    """Move admin; status only changes through the move status API"""
    list_display = ['handle', 'client', 'mover_profile', 'status', 'category', 'move_date', 'created_at']
    list_filter = ['status', 'category', 'move_type', 'created_at']
    search_fields = ['handle', 'client__username', 'mover_profile__user__username', 'pickup_address']
    readonly_fields = ['handle', 'status', 'mover_profile', 'created_at', 'updated_at', 'paid_at', 'completed_at']
    date_hierarchy = 'created_at'
    inlines = [MoveStatusHistoryInline]


@admin.register(MoveRequest)
class MoveRequestAdmin(admin.ModelAdmin):
    list_display = ("move", "mover_profile", "dispatch_round", "status", "distance_km", "sent_at", "expires_at")
    list_filter = ("status",)
    search_fields = ("move__handle", "mover_profile__user__username")
    readonly_fields = ("status", "sent_at", "expires_at", "responded_at")


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ("move", "reviewer", "mover_profile", "rating", "created_at")
    list_filter = ("rating",)
    search_fields = ("move__handle", "reviewer__username", "mover_profile__user__username")
    readonly_fields = ("move", "reviewer", "mover_profile", "rating", "created_at")
