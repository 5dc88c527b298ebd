from rest_framework.permissions import BasePermission


class IsClient(BasePermission):
    """
    Allows access only to users with role == 'client'.
    Keeps role check logic centralized.
    """
    message = "Only clients can perform this action"

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return getattr(user, "role", None) == "client"


class IsMover(BasePermission):
    """Allows access only to users with role == 'mover'."""
    message = "Only movers can perform this action"

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return getattr(user, "role", None) == "mover"
