"""
Error responses shared by the consent and game API views.

A form or game the caller may not see is answered exactly like one that does
not exist. Django ``ValidationError`` raised by the service layer becomes a
400 and a failed database call becomes a 503.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from django.db.models import Model, QuerySet
from rest_framework import status
from rest_framework.response import Response

from api.messages import ErrorMessages

logger = logging.getLogger(__name__)


class APIError:
    """Builders for the error bodies returned by the API."""

    RESOURCE_NOT_FOUND = ErrorMessages.RESOURCE_NOT_FOUND
    PERMISSION_DENIED = ErrorMessages.PERMISSION_DENIED
    VALIDATION_ERROR = ErrorMessages.VALIDATION_ERROR
    SERVICE_UNAVAILABLE = ErrorMessages.SERVICE_UNAVAILABLE

    @staticmethod
    def not_found(detail: Optional[str] = None) -> Response:
        """404 with ``detail`` or the generic not-found message."""
        return Response(
            {"detail": detail or APIError.RESOURCE_NOT_FOUND},
            status=status.HTTP_404_NOT_FOUND,
        )

    @staticmethod
    def permission_denied(detail: Optional[str] = None) -> Response:
        """Return a 403 for members whose role does not allow the action."""
        return Response(
            {"detail": detail or APIError.PERMISSION_DENIED},
            status=status.HTTP_403_FORBIDDEN,
        )

    @staticmethod
    def create_validation_error_response(
        errors: Union[Dict[str, List[str]], str, DjangoValidationError],
    ) -> Response:
        """
        Build a 400 from service-layer validation errors.

        Field errors keep their ``{field: [messages]}`` shape. A single
        non-field message is returned as ``{"detail": message}``; several are
        listed under ``errors`` with a generic ``detail``.
        """
        if isinstance(errors, DjangoValidationError):
            if hasattr(errors, "error_dict"):
                errors = {
                    field: [str(message) for message in messages]
                    for field, messages in errors.message_dict.items()
                }
            else:
                messages = [str(message) for message in errors.messages]
                if len(messages) != 1:
                    return Response(
                        {"detail": APIError.VALIDATION_ERROR, "errors": messages},
                        status=status.HTTP_400_BAD_REQUEST,
                    )
                errors = messages[0]

        if isinstance(errors, str):
            errors = {"detail": errors}
        if not isinstance(errors, dict):
            errors = {"detail": APIError.VALIDATION_ERROR}
        return Response(errors, status=status.HTTP_400_BAD_REQUEST)

    @staticmethod
    def service_unavailable(detail: Optional[str] = None) -> Response:
        """Return a 503 for a failed read or write against the store."""
        return Response(
            {"detail": detail or APIError.SERVICE_UNAVAILABLE},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )


class SecurityResponseHelper:
    """Lookups that never reveal whether a hidden object exists."""

    @staticmethod
    def safe_get_or_404(
        queryset: QuerySet[Model],
        user: Any,
        permission_check: Optional[Callable[[Any, Model], bool]] = None,
        **filter_kwargs: Any,
    ) -> Tuple[Optional[Model], Optional[Response]]:
        """
        Fetch one object, or a 404 if it is missing or ``permission_check`` fails.

        Returns ``(obj, None)`` on success and ``(None, response)`` otherwise, so
        callers can return the response unchanged::

            form, error_response = SecurityResponseHelper.safe_get_or_404(
                ConsentForm.objects, request.user, is_owner, id=form_id
            )
            if error_response:
                return error_response
        """
        try:
            obj = queryset.get(**filter_kwargs)
        except (queryset.model.DoesNotExist, ValueError, TypeError):
            return None, APIError.not_found()

        if permission_check and not permission_check(user, obj):
            return None, APIError.not_found()

        return obj, None


def handle_django_validation_error(e: DjangoValidationError) -> Response:
    return APIError.create_validation_error_response(e)


def handle_common_api_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """
    Map service-layer exceptions raised inside an API view to responses.

    ``ValidationError`` becomes a 400 and ``DatabaseError`` a 503. Place it
    below ``@api_view`` and ``@permission_classes``.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except DjangoValidationError as e:
            return handle_django_validation_error(e)
        except DatabaseError as e:
            logger.error(f"Database error in {func.__name__}: {e}")
            return APIError.service_unavailable()

    return wrapper
