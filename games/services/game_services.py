"""
Service layer for game and roster business logic.

This module provides service classes that handle game lifecycle and roster
operations, keeping the rules out of views and serializers.
"""

import logging
from typing import Any, Optional

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from consent.models import ConsentForm

from ..models import Game, GamePlayer

logger = logging.getLogger(__name__)

GAME_FIELDS = ("name", "description", "status", "minimum_players")


class GameService:
    """Service for creating, updating and deleting games."""

    def __init__(self, game: Optional[Game] = None):
        """Initialize service, optionally for an existing game."""
        self.game = game

    @transaction.atomic
    def create_game(self, dm: AbstractUser, **data: Any) -> Game:
        """Create a game run by dm.

        Args:
            dm: The user who will run the game
            **data: name, and optional description, status, minimum_players

        Returns:
            The created game, with its game code issued

        Raises:
            ValidationError: If the game data is invalid
        """
        game = Game(dm=dm, **self._game_fields(data))
        game.full_clean(exclude=["game_code"])
        game.save()
        self.game = game

        logger.info(
            f"Created game '{game.name}' ({game.game_code}) for DM {dm.username}"
        )
        return game

    @transaction.atomic
    def update_game(self, updated_by: AbstractUser, **data: Any) -> Game:
        """Update the game's editable fields.

        Raises:
            ValidationError: If updated_by is not the DM, the data is invalid
                or a different game_code is given
        """
        game = self._require_game()
        if not game.is_dm(updated_by):
            raise ValidationError("Only the DM can update a game")
        if "game_code" in data and data["game_code"] != game.game_code:
            raise ValidationError({"game_code": "The game code cannot be changed."})

        for field, value in self._game_fields(data).items():
            setattr(game, field, value)
        game.full_clean(exclude=["game_code"])
        game.save()

        logger.info(f"Updated game '{game.name}' by {updated_by.username}")
        return game

    @transaction.atomic
    def delete_game(self, requesting_user: AbstractUser) -> None:
        """Delete the game and its roster.

        Raises:
            ValidationError: If requesting_user is not the DM
        """
        game = self._require_game()
        if not game.is_dm(requesting_user):
            raise ValidationError("Only the DM can delete a game")

        game_name = game.name
        roster_size = game.players.count()
        game.delete()
        self.game = None

        logger.info(
            f"Deleted game '{game_name}' by {requesting_user.username} "
            f"with {roster_size} roster entries"
        )

    def _game_fields(self, data: dict) -> dict:
        fields = {key: data[key] for key in GAME_FIELDS if key in data}
        if isinstance(fields.get("name"), str):
            fields["name"] = fields["name"].strip()
        if fields.get("description") is None and "description" in fields:
            fields["description"] = ""
        return fields

    def _require_game(self) -> Game:
        if self.game is None:
            raise ValueError("GameService needs a game for this operation")
        return self.game


class RosterService:
    """Service for a game's roster: joining, sharing and leaving."""

    def __init__(self, game: Game):
        """Initialize service for a specific game."""
        self.game = game

    @classmethod
    def join_by_code(cls, code: str, player: AbstractUser) -> GamePlayer:
        """Join the game identified by a game code.

        Raises:
            ValidationError: If no game has this code or the player is its DM
        """
        game = Game.objects.get_by_code(code)
        if game is None:
            raise ValidationError("No game found with that game code")
        return cls(game).join(player)

    @transaction.atomic
    def join(self, player: AbstractUser) -> GamePlayer:
        """Add the player to the roster with status joined.

        A player already on the roster keeps their entry; an entry that had
        left or was only invited becomes joined again.

        Raises:
            ValidationError: If the player is the game's DM
        """
        if self.game.is_dm(player):
            raise ValidationError("The DM cannot join their own game as a player")

        try:
            with transaction.atomic():
                entry, created = GamePlayer.objects.select_for_update().get_or_create(
                    game=self.game, player=player
                )
        except IntegrityError:
            # A concurrent join inserted the entry after our lookup
            entry = GamePlayer.objects.select_for_update().get(
                game=self.game, player=player
            )
            created = False
        if not created and entry.status != GamePlayer.JOINED:
            entry.status = GamePlayer.JOINED
            entry.joined_at = timezone.now()
            entry.save(update_fields=["status", "joined_at", "updated_at"])
        return entry

    @transaction.atomic
    def share_form(self, player: AbstractUser, form: ConsentForm) -> GamePlayer:
        """Share one of the player's consent forms with the game.

        Sharing replaces any form the player shared before.

        Raises:
            ValidationError: If the player has not joined the game or does not
                own the form
        """
        entry = self._get_joined_entry(player)
        if form.owner_id != player.pk:
            raise ValidationError("Players can only share their own consent forms")

        entry.consent_form = form
        entry.save(update_fields=["consent_form", "updated_at"])
        return entry

    @transaction.atomic
    def unshare_form(self, player: AbstractUser) -> GamePlayer:
        """Stop sharing the player's consent form with the game.

        Raises:
            ValidationError: If the player has not joined the game
        """
        entry = self._get_joined_entry(player)
        if entry.consent_form_id is not None:
            entry.consent_form = None
            entry.save(update_fields=["consent_form", "updated_at"])
        return entry

    @transaction.atomic
    def leave_game(self, player: AbstractUser) -> GamePlayer:
        """Leave the game. The entry is kept with status left and no shared form.

        Raises:
            ValidationError: If the player has not joined the game
        """
        entry = self._get_joined_entry(player)
        entry.status = GamePlayer.LEFT
        entry.consent_form = None
        entry.save(update_fields=["status", "consent_form", "updated_at"])
        return entry

    def get_roster(self) -> QuerySet:
        """Get all roster entries with player information."""
        return self.game.players.select_related("player").order_by("joined_at", "pk")

    def _get_joined_entry(self, player: AbstractUser) -> GamePlayer:
        try:
            return GamePlayer.objects.select_for_update().get(
                game=self.game, player=player, status=GamePlayer.JOINED
            )
        except GamePlayer.DoesNotExist:
            raise ValidationError("You have not joined this game")
