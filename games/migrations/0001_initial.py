import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("consent", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Game",
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
                    "description",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Free-form description",
                    ),
                ),
                ("name", models.CharField(help_text="Game name", max_length=255)),
                (
                    "game_code",
                    models.CharField(
                        editable=False,
                        help_text="Code players use to join the game",
                        max_length=20,
                        unique=True,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("completed", "Completed"),
                            ("archived", "Archived"),
                        ],
                        db_index=True,
                        default="active",
                        help_text="Current status of the game",
                        max_length=10,
                    ),
                ),
                (
                    "minimum_players",
                    models.PositiveIntegerField(
                        default=1,
                        help_text="Minimum number of shared consent forms before the DM can see aggregated consent data",
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(100),
                        ],
                    ),
                ),
                (
                    "dm",
                    models.ForeignKey(
                        help_text="The Dungeon Master running this game",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="games_as_dm",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Game",
                "verbose_name_plural": "Games",
                "db_table": "games_game",
                "ordering": ["-created_at", "name"],
            },
        ),
        migrations.CreateModel(
            name="GamePlayer",
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
                    "joined_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="When the player joined",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("invited", "Invited"),
                            ("joined", "Joined"),
                            ("left", "Left"),
                        ],
                        db_index=True,
                        default="joined",
                        help_text="The player's status in the game",
                        max_length=10,
                    ),
                ),
                (
                    "consent_form",
                    models.ForeignKey(
                        blank=True,
                        help_text="The consent form this player shares with the game",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="game_shares",
                        to="consent.consentform",
                    ),
                ),
                (
                    "game",
                    models.ForeignKey(
                        help_text="The game",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="players",
                        to="games.game",
                    ),
                ),
                (
                    "player",
                    models.ForeignKey(
                        help_text="The player",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="game_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Game Player",
                "verbose_name_plural": "Game Players",
                "db_table": "games_player",
                "ordering": ["game", "joined_at"],
            },
        ),
        migrations.AddConstraint(
            model_name="gameplayer",
            constraint=models.UniqueConstraint(
                fields=("game", "player"), name="unique_game_player"
            ),
        ),
    ]
