from django.urls import path
from . import views

urlpatterns = [
    path('', views.move_list, name='move-list'),
    path('<uuid:move_id>/', views.move_detail, name='move-detail'),
    path('<uuid:move_id>/broadcast/', views.broadcast_move_request, name='move-broadcast'),
    path('<uuid:move_id>/status/', views.update_move_status, name='move-status'),
    path('<uuid:move_id>/history/', views.move_history, name='move-history'),
    path('<uuid:move_id>/offers/', views.move_offers, name='move-offers'),
    path('<uuid:move_id>/review/', views.submit_move_review, name='move-review'),
]
