from django.contrib import admin
from django.urls import path, include

from .views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path("health/", health_check),  # Health check endpoint

    # Authentication endpoints (at /api/auth/): JWT pair/refresh, current user
    path('api/auth/', include('accounts.urls')),

    # Mover APIs (profile, availability, location, open requests, accept/decline)
    path('api/movers/', include('movers.urls')),

    # Move endpoints (create, broadcast, status changes, history, offers)
    path('api/moves/', include('moves.urls')),
]
