from django.urls import include, path

from api.views.consent_form_views import (
    consent_topics_view,
    shared_consent_form_view,
    user_public_consent_forms_view,
)

app_name = "api"

urlpatterns = [
    path("consent-topics/", consent_topics_view, name="consent_topics"),
    path("consent-forms/", include("api.urls.consent_form_urls")),
    path(
        "consent-forms/shared/<str:share_token>/",
        shared_consent_form_view,
        name="shared_consent_form",
    ),
    path(
        "users/<str:username>/consent-forms/",
        user_public_consent_forms_view,
        name="user_public_consent_forms",
    ),
    path("games/", include("api.urls.game_urls")),
]
