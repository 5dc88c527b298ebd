from django.urls import path
from .views import (
    MoverProfileView,
    MoverStatusView,
    MoverLocationUpdateView,
    OpenMoveRequestsView,
    AcceptMoveRequestView,
    DeclineMoveRequestView,
    MoverCurrentMoveView,
    NearbyMoversView,
)

urlpatterns = [
    path("profile/", MoverProfileView.as_view(), name="mover-profile"),
    path("status/", MoverStatusView.as_view(), name="mover-status"),
    path("location/", MoverLocationUpdateView.as_view(), name="mover-location"),
    path("requests/", OpenMoveRequestsView.as_view(), name="mover-requests"),
    path("requests/<uuid:request_id>/accept/", AcceptMoveRequestView.as_view(), name="mover-request-accept"),
    path("requests/<uuid:request_id>/decline/", DeclineMoveRequestView.as_view(), name="mover-request-decline"),
    path("current-move/", MoverCurrentMoveView.as_view(), name="mover-current-move"),
    path("nearby/", NearbyMoversView.as_view(), name="movers-nearby"),
]
