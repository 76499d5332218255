"""
Consent form service for creating, replacing and deleting consent forms.

This module provides the ConsentFormService class. Responses are always
written as a complete set: updating a form deletes its previous responses and
recreates the new ones inside one transaction.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import transaction

from ..models import ComfortLevel, ConsentForm, ConsentResponse
from ..topics import MOVIE_RATINGS

logger = logging.getLogger(__name__)

MAX_TOPIC_LENGTH = 255


class ConsentFormService:
    """Service for managing a player's consent forms."""

    @transaction.atomic
    def create_form(
        self,
        owner: AbstractUser,
        name: str,
        responses: Iterable[Dict[str, Any]],
        is_public: bool = False,
        movie_rating: Optional[str] = None,
        movie_rating_other: Optional[str] = None,
        follow_up_response: Optional[str] = None,
    ) -> ConsentForm:
        """
        Create a consent form with its responses.

        Args:
            owner: The player who will own the form
            name: Form name
            responses: Iterable of dicts with topic_category, topic_name,
                comfort_level and optional is_custom
            is_public: Whether the form is listed publicly
            movie_rating: Optional rating from MOVIE_RATINGS
            movie_rating_other: Optional free-text rating
            follow_up_response: Optional free-text answer

        Returns:
            The created ConsentForm

        Raises:
            ValidationError: If the form data or any response is invalid
        """
        cleaned_responses = self.clean_responses(responses)
        form = ConsentForm(
            owner=owner,
            name=self._clean_name(name),
            **self._clean_form_fields(
                is_public=is_public,
                movie_rating=movie_rating,
                movie_rating_other=movie_rating_other,
                follow_up_response=follow_up_response,
            ),
        )
        form.full_clean(exclude=["share_token"])
        form.save()
        self._write_responses(form, cleaned_responses)

        logger.info(
            f"Created consent form '{form.name}' for {owner.username} "
            f"with {len(cleaned_responses)} responses"
        )
        return form

    @transaction.atomic
    def update_form(
        self,
        form: ConsentForm,
        updated_by: AbstractUser,
        name: str,
        responses: Iterable[Dict[str, Any]],
        is_public: bool = False,
        movie_rating: Optional[str] = None,
        movie_rating_other: Optional[str] = None,
        follow_up_response: Optional[str] = None,
    ) -> ConsentForm:
        """
        Replace a consent form's data and its full set of responses.

        Raises:
            ValidationError: If updated_by does not own the form or data is invalid
        """
        self._check_owner(form, updated_by, "update")
        cleaned_responses = self.clean_responses(responses)

        form.name = self._clean_name(name)
        for field, value in self._clean_form_fields(
            is_public=is_public,
            movie_rating=movie_rating,
            movie_rating_other=movie_rating_other,
            follow_up_response=follow_up_response,
        ).items():
            setattr(form, field, value)
        form.full_clean(exclude=["share_token"])
        form.save()

        deleted_count, _ = form.responses.all().delete()
        self._write_responses(form, cleaned_responses)

        logger.info(
            f"Replaced consent form '{form.name}' for {updated_by.username}: "
            f"{deleted_count} responses removed, {len(cleaned_responses)} written"
        )
        return form

    @transaction.atomic
    def delete_form(self, form: ConsentForm, requesting_user: AbstractUser) -> None:
        """
        Delete a consent form and its responses.

        Roster entries that shared the form keep existing with no form attached.

        Raises:
            ValidationError: If requesting_user does not own the form
        """
        self._check_owner(form, requesting_user, "delete")
        shared_in = form.game_shares.count()
        form_name = form.name
        form.delete()

        logger.info(
            f"Deleted consent form '{form_name}' of {requesting_user.username}; "
            f"unshared from {shared_in} game(s)"
        )

    def get_user_forms(self, user: AbstractUser):
        """Return the user's forms, newest first."""
        return ConsentForm.objects.filter(owner=user).prefetch_related("responses")

    def get_public_forms(self, username: str):
        """Return a user's public forms."""
        return ConsentForm.objects.public_for_username(username).prefetch_related(
            "responses"
        )

    def get_form_by_share_token(self, token: str) -> Optional[ConsentForm]:
        """Return the form with the given share token, or None."""
        if not token:
            return None
        try:
            return ConsentForm.objects.with_responses().get(share_token=token)
        except ConsentForm.DoesNotExist:
            return None

    def clean_responses(
        self, responses: Iterable[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """
        Validate and normalize a complete set of responses for one form.

        Category and topic names are stripped of surrounding whitespace; case
        is preserved, since aggregation matches names exactly.

        Returns:
            List of cleaned response dicts

        Raises:
            ValidationError: On missing fields, unknown comfort levels or a
                repeated (category, topic) pair
        """
        if responses is None or isinstance(responses, (str, bytes, dict)):
            raise ValidationError("Responses must be a list")

        cleaned: List[Dict[str, Any]] = []
        seen: Dict[Tuple[str, str], int] = {}
        errors: List[str] = []

        for index, response in enumerate(responses):
            if not isinstance(response, dict):
                errors.append(f"Response {index} must be an object")
                continue

            category = response.get("topic_category")
            topic = response.get("topic_name")
            level = response.get("comfort_level")
            is_custom = response.get("is_custom", False)

            if not isinstance(category, str) or not category.strip():
                errors.append(f"Response {index} is missing a topic category")
                continue
            if not isinstance(topic, str) or not topic.strip():
                errors.append(f"Response {index} is missing a topic name")
                continue
            if level not in ComfortLevel.values:
                errors.append(
                    f"Response {index} has invalid comfort level: {level!r}"
                )
                continue
            if not isinstance(is_custom, bool):
                errors.append(f"Response {index} has a non-boolean is_custom")
                continue

            key = (category.strip(), topic.strip())
            if len(key[0]) > MAX_TOPIC_LENGTH or len(key[1]) > MAX_TOPIC_LENGTH:
                errors.append(
                    f"Response {index} exceeds {MAX_TOPIC_LENGTH} characters"
                )
                continue
            if key in seen:
                errors.append(
                    f"Response {index} repeats topic '{key[1]}' in category "
                    f"'{key[0]}' (first given at {seen[key]})"
                )
                continue
            seen[key] = index

            cleaned.append(
                {
                    "topic_category": key[0],
                    "topic_name": key[1],
                    "comfort_level": level,
                    "is_custom": is_custom,
                }
            )

        if errors:
            raise ValidationError(errors)
        if not cleaned:
            raise ValidationError("A consent form needs at least one response")
        return cleaned

    def _write_responses(
        self, form: ConsentForm, cleaned_responses: List[Dict[str, Any]]
    ) -> None:
        ConsentResponse.objects.bulk_create(
            [ConsentResponse(consent_form=form, **data) for data in cleaned_responses]
        )

    def _clean_name(self, name: Any) -> str:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError({"name": "Consent form name is required."})
        return name.strip()

    def _clean_form_fields(self, **fields: Any) -> Dict[str, Any]:
        movie_rating = fields.get("movie_rating") or ""
        if movie_rating and movie_rating not in MOVIE_RATINGS:
            raise ValidationError(
                {"movie_rating": f"Invalid movie rating: {movie_rating}"}
            )
        return {
            "is_public": bool(fields.get("is_public")),
            "movie_rating": movie_rating,
            "movie_rating_other": fields.get("movie_rating_other") or "",
            "follow_up_response": fields.get("follow_up_response") or "",
        }

    def _check_owner(
        self, form: ConsentForm, user: AbstractUser, action: str
    ) -> None:
        if form.owner_id != user.pk:
            raise ValidationError(
                f"Only the owner of a consent form can {action} it"
            )
