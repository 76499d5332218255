"""Tests for GameService and RosterService."""

from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.test import TestCase

from consent.models import ConsentForm
from games.models import Game, GamePlayer
from games.services import GameService, RosterService

User = get_user_model()


class GameServiceTest(TestCase):
    """Test game creation, update and deletion."""

    def setUp(self):
        """Set up test data."""
        self.dm = User.objects.create_user(
            username="dm", email="dm@example.com", password="TestPass123!"
        )
        self.player = User.objects.create_user(
            username="player", email="player@example.com", password="TestPass123!"
        )

    def test_create_game(self):
        """Test creating a game issues a code and sets the DM."""
        game = GameService().create_game(
            self.dm, name="  Night Market ", description="Heists", minimum_players=3
        )

        self.assertEqual(game.dm, self.dm)
        self.assertEqual(game.name, "Night Market")
        self.assertEqual(game.minimum_players, 3)
        self.assertTrue(game.game_code)

    def test_create_game_requires_name(self):
        """Test that a blank name is rejected."""
        with self.assertRaises(ValidationError):
            GameService().create_game(self.dm, name="   ")

    def test_create_game_rejects_out_of_range_minimum(self):
        """Test minimum_players validation."""
        with self.assertRaises(ValidationError):
            GameService().create_game(self.dm, name="Game", minimum_players=0)
        with self.assertRaises(ValidationError):
            GameService().create_game(self.dm, name="Game", minimum_players=101)

    def test_update_game_by_dm(self):
        """Test the DM can update the game."""
        game = GameService().create_game(self.dm, name="Game")
        service = GameService(game)

        updated = service.update_game(self.dm, name="Renamed", status=Game.COMPLETED)

        self.assertEqual(updated.name, "Renamed")
        self.assertEqual(updated.status, Game.COMPLETED)

    def test_update_game_by_other_user_fails(self):
        """Test that only the DM can update."""
        game = GameService().create_game(self.dm, name="Game")
        with self.assertRaises(ValidationError):
            GameService(game).update_game(self.player, name="Hijacked")

    def test_update_cannot_change_game_code(self):
        """Test that a different game code is rejected."""
        game = GameService().create_game(self.dm, name="Game")
        with self.assertRaises(ValidationError):
            GameService(game).update_game(self.dm, game_code="AAAAAA-AAAAAA")

        same = GameService(game).update_game(self.dm, game_code=game.game_code)
        self.assertEqual(same.game_code, game.game_code)

    def test_delete_game(self):
        """Test the DM can delete the game with its roster."""
        game = GameService().create_game(self.dm, name="Game")
        RosterService(game).join(self.player)

        GameService(game).delete_game(self.dm)

        self.assertFalse(Game.objects.exists())
        self.assertFalse(GamePlayer.objects.exists())

    def test_delete_game_by_other_user_fails(self):
        """Test that only the DM can delete."""
        game = GameService().create_game(self.dm, name="Game")
        with self.assertRaises(ValidationError):
            GameService(game).delete_game(self.player)
        self.assertTrue(Game.objects.filter(pk=game.pk).exists())


class RosterServiceTest(TestCase):
    """Test joining, sharing and leaving."""

    def setUp(self):
        """Set up test data."""
        self.dm = User.objects.create_user(
            username="dm", email="dm@example.com", password="TestPass123!"
        )
        self.player = User.objects.create_user(
            username="player", email="player@example.com", password="TestPass123!"
        )
        self.other = User.objects.create_user(
            username="other", email="other@example.com", password="TestPass123!"
        )
        self.game = Game.objects.create(name="Night Market", dm=self.dm)
        self.service = RosterService(self.game)
        self.form = ConsentForm.objects.create(owner=self.player, name="Default")
        self.other_form = ConsentForm.objects.create(owner=self.other, name="Other")

    def test_join_by_code(self):
        """Test joining with a code typed in lowercase with spaces."""
        entry = RosterService.join_by_code(
            f" {self.game.game_code.lower()} ", self.player
        )

        self.assertEqual(entry.game, self.game)
        self.assertEqual(entry.player, self.player)
        self.assertEqual(entry.status, GamePlayer.JOINED)

    def test_join_by_unknown_code_fails(self):
        """Test that an unknown code is rejected."""
        with self.assertRaises(ValidationError):
            RosterService.join_by_code("ZZZZZZ-ZZZZZZ", self.player)

    def test_dm_cannot_join_own_game(self):
        """Test that the DM cannot join as a player."""
        with self.assertRaises(ValidationError):
            RosterService.join_by_code(self.game.game_code, self.dm)

    def test_joining_twice_returns_existing_entry(self):
        """Test that re-joining does not duplicate the entry or drop the share."""
        first = self.service.join(self.player)
        self.service.share_form(self.player, self.form)

        second = self.service.join(self.player)

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(second.consent_form, self.form)
        self.assertEqual(GamePlayer.objects.count(), 1)

    def test_rejoining_after_leaving(self):
        """Test that a player who left becomes joined again."""
        self.service.join(self.player)
        self.service.leave_game(self.player)

        entry = self.service.join(self.player)

        self.assertEqual(entry.status, GamePlayer.JOINED)
        self.assertIsNone(entry.consent_form)
        self.assertEqual(GamePlayer.objects.count(), 1)

    def test_join_race_returns_entry_created_concurrently(self):
        """Test an insert that loses a race falls back to the existing entry."""
        existing = GamePlayer.objects.create(
            game=self.game, player=self.player, status=GamePlayer.LEFT
        )

        with patch(
            "django.db.models.query.QuerySet.get_or_create",
            side_effect=IntegrityError("duplicate key value"),
        ):
            entry = self.service.join(self.player)

        self.assertEqual(entry.pk, existing.pk)
        self.assertEqual(entry.status, GamePlayer.JOINED)
        self.assertEqual(GamePlayer.objects.count(), 1)

    def test_share_form(self):
        """Test sharing a form with the game."""
        self.service.join(self.player)
        entry = self.service.share_form(self.player, self.form)
        self.assertEqual(entry.consent_form, self.form)

    def test_share_replaces_previous_form(self):
        """Test that sharing a second form replaces the first."""
        second = ConsentForm.objects.create(owner=self.player, name="Second")
        self.service.join(self.player)
        self.service.share_form(self.player, self.form)

        entry = self.service.share_form(self.player, second)

        self.assertEqual(entry.consent_form, second)

    def test_share_requires_joined_player(self):
        """Test that players must join before sharing."""
        with self.assertRaises(ValidationError):
            self.service.share_form(self.player, self.form)

    def test_share_requires_own_form(self):
        """Test that a player cannot share another user's form."""
        self.service.join(self.player)
        with self.assertRaises(ValidationError):
            self.service.share_form(self.player, self.other_form)

    def test_unshare_form(self):
        """Test withdrawing a shared form."""
        self.service.join(self.player)
        self.service.share_form(self.player, self.form)

        entry = self.service.unshare_form(self.player)

        self.assertIsNone(entry.consent_form)
        self.assertEqual(entry.status, GamePlayer.JOINED)
        self.assertTrue(ConsentForm.objects.filter(pk=self.form.pk).exists())

    def test_leave_game_clears_share(self):
        """Test that leaving keeps the entry but clears the share."""
        self.service.join(self.player)
        self.service.share_form(self.player, self.form)

        entry = self.service.leave_game(self.player)

        self.assertEqual(entry.status, GamePlayer.LEFT)
        self.assertIsNone(entry.consent_form)

    def test_leave_requires_joined_player(self):
        """Test that leaving a game you never joined fails."""
        with self.assertRaises(ValidationError):
            self.service.leave_game(self.player)

    def test_get_roster(self):
        """Test the roster lists every entry."""
        self.service.join(self.player)
        self.service.join(self.other)
        self.service.leave_game(self.other)

        roster = list(self.service.get_roster())

        self.assertEqual([entry.player for entry in roster], [self.player, self.other])

    def test_roster_changes_are_logged(self):
        """Test that joining and sharing are logged."""
        with self.assertLogs("games.signals", level="INFO") as logs:
            self.service.join(self.player)
            self.service.share_form(self.player, self.form)

        self.assertTrue(any("shared consent form" in line for line in logs.output))
