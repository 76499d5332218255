"""
URL patterns for consent form API endpoints.
"""

from django.urls import path

from ..views.consent_form_views import (
    consent_form_detail_view,
    consent_form_list_view,
)

urlpatterns = [
    path("", consent_form_list_view, name="consent_forms"),
    path("<int:form_id>/", consent_form_detail_view, name="consent_form_detail"),
]
