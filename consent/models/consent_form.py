"""
Consent form models.

A ConsentForm is a named, reusable set of per-topic comfort ratings owned by
one player. Each ConsentResponse rates a single (category, topic) pair as
green, yellow or red. Custom topics differ from predefined ones only by the
is_custom flag.
"""

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils.crypto import get_random_string

from core.models import TimestampedMixin

from ..topics import MOVIE_RATING_CHOICES

SHARE_TOKEN_LENGTH = 32


class ComfortLevel(models.TextChoices):
    """Comfort rating for a topic, ordered by severity RED > YELLOW > GREEN."""

    GREEN = "green", "Green"
    YELLOW = "yellow", "Yellow"
    RED = "red", "Red"

    @classmethod
    def severity(cls, value: str) -> int:
        """Return the severity rank of a rating (green=0, yellow=1, red=2)."""
        return _SEVERITY[cls(value)]

    @classmethod
    def most_severe(cls, values: Iterable[str]) -> Optional["ComfortLevel"]:
        """Return the most severe rating among values, or None if empty."""
        levels = [cls(value) for value in values]
        if not levels:
            return None
        return max(levels, key=cls.severity)


_SEVERITY = {
    ComfortLevel.GREEN: 0,
    ComfortLevel.YELLOW: 1,
    ComfortLevel.RED: 2,
}


class ConsentFormManager(models.Manager):
    """Custom manager for ConsentForm model."""

    def public_for_username(self, username: str) -> "models.QuerySet[ConsentForm]":
        """Return the public forms of the user with the given username."""
        return self.filter(owner__username=username, is_public=True)

    def with_responses(self) -> "models.QuerySet[ConsentForm]":
        """Return forms with their responses prefetched."""
        return self.prefetch_related("responses")


class ConsentForm(TimestampedMixin):
    """A player's reusable consent form."""

    owner = models.ForeignKey(  # type: ignore[var-annotated]
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="consent_forms",
        help_text="The player who owns this form",
    )
    name = models.CharField(  # type: ignore[var-annotated]
        max_length=255, help_text="Name of the consent form"
    )
    is_public = models.BooleanField(  # type: ignore[var-annotated]
        default=False,
        db_index=True,
        help_text="Whether the form is listed on the owner's public profile",
    )
    movie_rating = models.CharField(  # type: ignore[var-annotated]
        max_length=10,
        choices=MOVIE_RATING_CHOICES,
        blank=True,
        default="",
        help_text="Overall content rating the player is comfortable with",
    )
    movie_rating_other = models.CharField(  # type: ignore[var-annotated]
        max_length=255,
        blank=True,
        default="",
        help_text="Free-text rating when movie_rating is 'Other'",
    )
    follow_up_response = models.TextField(  # type: ignore[var-annotated]
        blank=True,
        default="",
        help_text="Free-text answer to the checklist's follow-up question",
    )
    share_token = models.CharField(  # type: ignore[var-annotated]
        max_length=64,
        unique=True,
        editable=False,
        help_text="Unguessable token for sharing the form by link",
    )

    objects = ConsentFormManager()

    class Meta:
        db_table = "consent_form"
        ordering = ["-created_at", "name"]
        verbose_name = "Consent Form"
        verbose_name_plural = "Consent Forms"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_share_token = dict(zip(field_names, values)).get(
            "share_token"
        )
        return instance

    def __str__(self) -> str:
        """Return the form name and owner."""
        return f"{self.name} ({self.owner.username})"

    def save(self, *args: Any, **kwargs: Any) -> None:
        """Save the form, generating its share token on first save."""
        loaded_token = getattr(self, "_loaded_share_token", None)
        if loaded_token and self.share_token != loaded_token:
            raise ValidationError("The share token of a consent form cannot change.")
        if not self.share_token:
            self.share_token = self._generate_unique_share_token()
        super().save(*args, **kwargs)
        self._loaded_share_token = self.share_token

    def _generate_unique_share_token(self) -> str:
        """Generate a share token no other form uses."""
        while True:
            token = get_random_string(SHARE_TOKEN_LENGTH)
            if not ConsentForm.objects.filter(share_token=token).exists():
                return token

    def clean(self) -> None:
        """Validate the consent form data."""
        super().clean()
        if not self.name or not self.name.strip():
            raise ValidationError({"name": "Consent form name is required."})

    def responses_by_category(self) -> Dict[str, List["ConsentResponse"]]:
        """Return this form's responses grouped by category, in category order."""
        grouped: Dict[str, List[ConsentResponse]] = OrderedDict()
        for response in self.responses.order_by("topic_category", "topic_name"):
            grouped.setdefault(response.topic_category, []).append(response)
        return grouped

    def custom_responses(self) -> "models.QuerySet[ConsentResponse]":
        """Return only the free-form topics the player added."""
        return self.responses.filter(is_custom=True)

    def predefined_responses(self) -> "models.QuerySet[ConsentResponse]":
        """Return only the responses to catalog topics."""
        return self.responses.filter(is_custom=False)

    def is_completed(self) -> bool:
        """Check if the form has at least one response."""
        return self.responses.exists()


class ConsentResponse(TimestampedMixin):
    """A single topic rating within a consent form."""

    consent_form = models.ForeignKey(  # type: ignore[var-annotated]
        ConsentForm,
        on_delete=models.CASCADE,
        related_name="responses",
        help_text="The form this response belongs to",
    )
    topic_category = models.CharField(  # type: ignore[var-annotated]
        max_length=255, help_text="Topic category, e.g. 'Horror'"
    )
    topic_name = models.CharField(  # type: ignore[var-annotated]
        max_length=255, help_text="Topic name, matched case-sensitively"
    )
    comfort_level = models.CharField(  # type: ignore[var-annotated]
        max_length=10,
        choices=ComfortLevel.choices,
        help_text="Green, yellow or red",
    )
    is_custom = models.BooleanField(  # type: ignore[var-annotated]
        default=False,
        db_index=True,
        help_text="Whether the topic was added by the player",
    )

    class Meta:
        db_table = "consent_response"
        ordering = ["topic_category", "topic_name"]
        constraints = [
            models.UniqueConstraint(
                fields=["consent_form", "topic_category", "topic_name"],
                name="unique_consent_form_topic",
            ),
        ]
        verbose_name = "Consent Response"
        verbose_name_plural = "Consent Responses"

    def __str__(self) -> str:
        """Return a string representation of the response."""
        return f"{self.topic_category} / {self.topic_name}: {self.comfort_level}"

    def is_hard_boundary(self) -> bool:
        """Check if this response is a hard line (red)."""
        return self.comfort_level == ComfortLevel.RED

    def requires_discussion(self) -> bool:
        """Check if this response needs discussion ahead of time (yellow)."""
        return self.comfort_level == ComfortLevel.YELLOW

    def is_enthusiastic(self) -> bool:
        """Check if this response is enthusiastic consent (green)."""
        return self.comfort_level == ComfortLevel.GREEN
