import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ConsentForm",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="When this row was first saved",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        db_index=True,
                        help_text="When this row was last saved",
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        help_text="Name of the consent form", max_length=255
                    ),
                ),
                (
                    "is_public",
                    models.BooleanField(
                        db_index=True,
                        default=False,
                        help_text="Whether the form is listed on the owner's public profile",
                    ),
                ),
                (
                    "movie_rating",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("G", "G"),
                            ("PG", "PG"),
                            ("PG-13", "PG-13"),
                            ("R", "R"),
                            ("NC-17", "NC-17"),
                            ("Other", "Other"),
                        ],
                        default="",
                        help_text="Overall content rating the player is comfortable with",
                        max_length=10,
                    ),
                ),
                (
                    "movie_rating_other",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Free-text rating when movie_rating is 'Other'",
                        max_length=255,
                    ),
                ),
                (
                    "follow_up_response",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Free-text answer to the checklist's follow-up question",
                    ),
                ),
                (
                    "share_token",
                    models.CharField(
                        editable=False,
                        help_text="Unguessable token for sharing the form by link",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="The player who owns this form",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="consent_forms",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Consent Form",
                "verbose_name_plural": "Consent Forms",
                "db_table": "consent_form",
                "ordering": ["-created_at", "name"],
            },
        ),
        migrations.CreateModel(
            name="ConsentResponse",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="When this row was first saved",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        db_index=True,
                        help_text="When this row was last saved",
                    ),
                ),
                (
                    "topic_category",
                    models.CharField(
                        help_text="Topic category, e.g. 'Horror'", max_length=255
                    ),
                ),
                (
                    "topic_name",
                    models.CharField(
                        help_text="Topic name, matched case-sensitively",
                        max_length=255,
                    ),
                ),
                (
                    "comfort_level",
                    models.CharField(
                        choices=[
                            ("green", "Green"),
                            ("yellow", "Yellow"),
                            ("red", "Red"),
                        ],
                        help_text="Green, yellow or red",
                        max_length=10,
                    ),
                ),
                (
                    "is_custom",
                    models.BooleanField(
                        db_index=True,
                        default=False,
                        help_text="Whether the topic was added by the player",
                    ),
                ),
                (
                    "consent_form",
                    models.ForeignKey(
                        help_text="The form this response belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="responses",
                        to="consent.consentform",
                    ),
                ),
            ],
            options={
                "verbose_name": "Consent Response",
                "verbose_name_plural": "Consent Responses",
                "db_table": "consent_response",
                "ordering": ["topic_category", "topic_name"],
            },
        ),
        migrations.AddConstraint(
            model_name="consentresponse",
            constraint=models.UniqueConstraint(
                fields=("consent_form", "topic_category", "topic_name"),
                name="unique_consent_form_topic",
            ),
        ),
    ]
