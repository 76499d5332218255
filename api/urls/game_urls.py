"""
URL patterns for game API endpoints.
"""

from django.urls import path

from ..views.game_views import (
    game_consent_view,
    game_detail_view,
    game_list_view,
    game_share_view,
    join_game_view,
    leave_game_view,
)

urlpatterns = [
    path("", game_list_view, name="games"),
    path("join/", join_game_view, name="game_join"),
    path("<int:game_id>/", game_detail_view, name="game_detail"),
    path("<int:game_id>/share/", game_share_view, name="game_share"),
    path("<int:game_id>/leave/", leave_game_view, name="game_leave"),
    path("<int:game_id>/consent/", game_consent_view, name="game_consent"),
]
