"""
API views for consent forms and the topic catalog.
"""

import logging

from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from api.errors import APIError, SecurityResponseHelper, handle_common_api_exceptions
from api.messages import ErrorMessages
from api.serializers import ConsentFormSerializer, ConsentFormWriteSerializer
from consent.models import ComfortLevel, ConsentForm
from consent.services import ConsentFormService
from consent.topics import MOVIE_RATINGS, get_topic_catalog

User = get_user_model()
logger = logging.getLogger(__name__)


def _is_owner(user, form):
    return form.owner_id == user.pk


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def consent_topics_view(request):
    """Return the predefined topic catalog used to fill in a form."""
    return Response(
        {
            "categories": [
                {"category": category, "topics": topics}
                for category, topics in get_topic_catalog().items()
            ],
            "comfort_levels": list(ComfortLevel.values),
            "movie_ratings": list(MOVIE_RATINGS),
        },
        status=status.HTTP_200_OK,
    )


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
@handle_common_api_exceptions
def consent_form_list_view(request):
    """List the user's consent forms or create a new one."""
    service = ConsentFormService()

    if request.method == "GET":
        forms = service.get_user_forms(request.user)
        serializer = ConsentFormSerializer(
            forms, many=True, context={"request": request}
        )
        return Response(serializer.data, status=status.HTTP_200_OK)

    serializer = ConsentFormWriteSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    form = service.create_form(owner=request.user, **serializer.validated_data)
    logger.info(f"Consent form {form.pk} created via API by {request.user.username}")
    return Response(
        ConsentFormSerializer(form, context={"request": request}).data,
        status=status.HTTP_201_CREATED,
    )


@api_view(["GET", "PUT", "DELETE"])
@permission_classes([IsAuthenticated])
@handle_common_api_exceptions
def consent_form_detail_view(request, form_id):
    """Get, replace or delete one of the user's consent forms."""
    form, error_response = SecurityResponseHelper.safe_get_or_404(
        ConsentForm.objects.with_responses(),
        request.user,
        _is_owner,
        id=form_id,
    )
    if error_response:
        return APIError.not_found(ErrorMessages.CONSENT_FORM_NOT_FOUND)

    service = ConsentFormService()

    if request.method == "GET":
        return Response(
            ConsentFormSerializer(form, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )

    if request.method == "PUT":
        serializer = ConsentFormWriteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        form = service.update_form(
            form=form, updated_by=request.user, **serializer.validated_data
        )
        form = ConsentForm.objects.with_responses().get(pk=form.pk)
        return Response(
            ConsentFormSerializer(form, context={"request": request}).data,
            status=status.HTTP_200_OK,
        )

    service.delete_form(form=form, requesting_user=request.user)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(["GET"])
@permission_classes([AllowAny])
@handle_common_api_exceptions
def shared_consent_form_view(request, share_token):
    """Return a consent form by its share token."""
    form = ConsentFormService().get_form_by_share_token(share_token)
    if form is None:
        return APIError.not_found(ErrorMessages.CONSENT_FORM_NOT_FOUND)
    return Response(
        ConsentFormSerializer(form, context={"request": request}).data,
        status=status.HTTP_200_OK,
    )


@api_view(["GET"])
@permission_classes([AllowAny])
@handle_common_api_exceptions
def user_public_consent_forms_view(request, username):
    """List a user's public consent forms."""
    if not User.objects.filter(username=username).exists():
        return APIError.not_found(ErrorMessages.USER_NOT_FOUND)
    forms = ConsentFormService().get_public_forms(username)
    serializer = ConsentFormSerializer(forms, many=True, context={"request": request})
    return Response(serializer.data, status=status.HTTP_200_OK)
