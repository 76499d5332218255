from typing import Any, Optional

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q, QuerySet
from django.utils import timezone
from django.utils.crypto import get_random_string

from core.models import DescribedModelMixin, TimestampedMixin

GAME_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
GAME_CODE_SEGMENT_LENGTH = 6
MIN_PLAYERS_LIMIT = 100


def normalize_game_code(code: str) -> str:
    """Normalize a game code typed by a player (codes are issued uppercase)."""
    return (code or "").strip().upper()


class GameManager(models.Manager):
    """Custom manager for Game model with visibility filtering."""

    def visible_to_user(self, user: Optional[AbstractUser]) -> "QuerySet[Game]":
        """Return games the user runs or is on the roster of.

        Args:
            user: The user to filter games for

        Returns:
            QuerySet of games visible to the user
        """
        if not user or not user.is_authenticated:
            return self.none()
        return self.filter(Q(dm=user) | Q(players__player=user)).distinct()

    def get_by_code(self, code: str) -> Optional["Game"]:
        """Return the game with the given code, or None."""
        normalized = normalize_game_code(code)
        if not normalized:
            return None
        return self.filter(game_code=normalized).first()


class Game(TimestampedMixin, DescribedModelMixin):
    """A DM-run game that players join with a game code."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"
    STATUS_CHOICES = [
        (ACTIVE, "Active"),
        (COMPLETED, "Completed"),
        (ARCHIVED, "Archived"),
    ]

    dm = models.ForeignKey(  # type: ignore[var-annotated]
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="games_as_dm",
        help_text="The Dungeon Master running this game",
    )
    name = models.CharField(  # type: ignore[var-annotated]
        max_length=255, help_text="Game name"
    )
    game_code = models.CharField(  # type: ignore[var-annotated]
        max_length=20,
        unique=True,
        editable=False,
        help_text="Code players use to join the game",
    )
    status = models.CharField(  # type: ignore[var-annotated]
        max_length=10,
        choices=STATUS_CHOICES,
        default=ACTIVE,
        db_index=True,
        help_text="Current status of the game",
    )
    minimum_players = models.PositiveIntegerField(  # type: ignore[var-annotated]
        default=1,
        validators=[
            MinValueValidator(1),
            MaxValueValidator(MIN_PLAYERS_LIMIT),
        ],
        help_text=(
            "Minimum number of shared consent forms before the DM can see "
            "aggregated consent data"
        ),
    )

    objects = GameManager()

    class Meta:
        db_table = "games_game"
        ordering = ["-created_at", "name"]
        verbose_name = "Game"
        verbose_name_plural = "Games"

    @classmethod
    def from_db(cls, db, field_names, values):
        instance = super().from_db(db, field_names, values)
        instance._loaded_game_code = dict(zip(field_names, values)).get("game_code")
        return instance

    def __str__(self) -> str:
        """Return the game name."""
        return self.name

    def save(self, *args: Any, **kwargs: Any) -> None:
        """Save the game, issuing its game code on first save."""
        loaded_code = getattr(self, "_loaded_game_code", None)
        if loaded_code and self.game_code != loaded_code:
            raise ValidationError("The game code of a game cannot change.")
        if not self.game_code:
            self.game_code = self._generate_unique_game_code()
        super().save(*args, **kwargs)
        self._loaded_game_code = self.game_code

    def _generate_unique_game_code(self) -> str:
        """Generate a code of the form XXXXXX-XXXXXX that no other game uses."""
        while True:
            code = "-".join(
                get_random_string(GAME_CODE_SEGMENT_LENGTH, GAME_CODE_ALPHABET)
                for _ in range(2)
            )
            if not Game.objects.filter(game_code=code).exists():
                return code

    def clean(self) -> None:
        """Validate the game data."""
        super().clean()
        if not self.name or not self.name.strip():
            raise ValidationError({"name": "Game name is required."})

    def is_dm(self, user: Optional[AbstractUser]) -> bool:
        """Check if the user is the DM of this game."""
        if not user or not user.is_authenticated:
            return False
        return self.dm_id == user.pk

    def is_player(self, user: Optional[AbstractUser]) -> bool:
        """Check if the user is on this game's roster (any status)."""
        if not user or not user.is_authenticated:
            return False
        return self.players.filter(player=user).exists()

    def can_view(self, user: Optional[AbstractUser]) -> bool:
        """Check if the user may see this game: its DM or anyone on the roster."""
        return self.is_dm(user) or self.is_player(user)


class GamePlayer(TimestampedMixin):
    """Roster entry: a player's membership in a game and their shared form."""

    INVITED = "invited"
    JOINED = "joined"
    LEFT = "left"
    STATUS_CHOICES = [
        (INVITED, "Invited"),
        (JOINED, "Joined"),
        (LEFT, "Left"),
    ]

    game = models.ForeignKey(  # type: ignore[var-annotated]
        Game,
        on_delete=models.CASCADE,
        related_name="players",
        help_text="The game",
    )
    player = models.ForeignKey(  # type: ignore[var-annotated]
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="game_memberships",
        help_text="The player",
    )
    consent_form = models.ForeignKey(  # type: ignore[var-annotated]
        "consent.ConsentForm",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="game_shares",
        help_text="The consent form this player shares with the game",
    )
    joined_at = models.DateTimeField(  # type: ignore[var-annotated]
        default=timezone.now, help_text="When the player joined"
    )
    status = models.CharField(  # type: ignore[var-annotated]
        max_length=10,
        choices=STATUS_CHOICES,
        default=JOINED,
        db_index=True,
        help_text="The player's status in the game",
    )

    class Meta:
        db_table = "games_player"
        constraints = [
            models.UniqueConstraint(
                fields=["game", "player"], name="unique_game_player"
            ),
        ]
        ordering = ["game", "joined_at"]
        verbose_name = "Game Player"
        verbose_name_plural = "Game Players"

    def __str__(self) -> str:
        """Return a string representation of the roster entry."""
        return f"{self.player.username} - {self.game.name} ({self.status})"

    def clean(self) -> None:
        """Validate the roster entry."""
        super().clean()
        if self.game_id and self.player_id and self.game.dm_id == self.player_id:
            raise ValidationError("The DM cannot join their own game as a player.")
        if self.consent_form_id and self.consent_form.owner_id != self.player_id:
            raise ValidationError(
                {"consent_form": "Players can only share their own consent forms."}
            )

    def has_shared_consent_form(self) -> bool:
        """Check if the player has shared a consent form with the game."""
        return self.consent_form_id is not None
