"""
Abstract model mixins shared by the consent and games apps.

Consent forms, responses, games and roster entries all carry creation and
modification timestamps; games also carry a free-form description.
"""

from django.db import models


class TimestampedMixin(models.Model):
    """Indexed ``created_at`` / ``updated_at`` columns maintained by Django."""

    created_at = models.DateTimeField(  # type: ignore[var-annotated]
        auto_now_add=True,
        db_index=True,
        help_text="When this row was first saved",
    )
    updated_at = models.DateTimeField(  # type: ignore[var-annotated]
        auto_now=True,
        db_index=True,
        help_text="When this row was last saved",
    )

    class Meta:
        abstract = True


class DescribedModelMixin(models.Model):
    """Adds a blank-able ``description`` text column."""

    description = models.TextField(  # type: ignore[var-annotated]
        blank=True, default="", help_text="Free-form description"
    )

    class Meta:
        abstract = True
