"""Tests for GameConsentService, the database-backed consent overview."""

from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import TestCase

from consent.models import ConsentForm, ConsentResponse
from games.models import Game, GamePlayer
from games.services import GameConsentService, RosterService, TopicStatus

User = get_user_model()


class GameConsentServiceTest(TestCase):
    """Test the consent overview for a game."""

    def setUp(self):
        """Set up a game with three joined players."""
        self.dm = User.objects.create_user(
            username="dm", email="dm@example.com", password="TestPass123!"
        )
        self.players = [
            User.objects.create_user(
                username=f"player{i}",
                email=f"player{i}@example.com",
                password="TestPass123!",
            )
            for i in range(3)
        ]
        self.game = Game.objects.create(name="Night Market", dm=self.dm, minimum_players=3)
        self.roster = RosterService(self.game)
        for player in self.players:
            self.roster.join(player)

        self.forms = [
            self.create_form(self.players[0], [("Horror", "Blood", "green")]),
            self.create_form(self.players[1], [("Horror", "Blood", "yellow")]),
            self.create_form(
                self.players[2],
                [("Horror", "Blood", "green"), ("Horror", "Clowns", "red", True)],
            ),
        ]
        self.service = GameConsentService(self.game)

    def create_form(self, owner, responses):
        form = ConsentForm.objects.create(owner=owner, name=f"{owner.username} form")
        for row in responses:
            category, topic, level = row[:3]
            ConsentResponse.objects.create(
                consent_form=form,
                topic_category=category,
                topic_name=topic,
                comfort_level=level,
                is_custom=row[3] if len(row) > 3 else False,
            )
        return form

    def share_all(self):
        for player, form in zip(self.players, self.forms):
            self.roster.share_form(player, form)

    def test_gate_closed_until_last_player_shares(self):
        """Test the all-or-nothing scenario against the database."""
        self.roster.share_form(self.players[0], self.forms[0])
        self.roster.share_form(self.players[1], self.forms[1])

        self.assertFalse(self.service.can_disclose())
        self.assertTrue(self.service.get_aggregate_report().is_empty)

        self.roster.share_form(self.players[2], self.forms[2])

        self.assertTrue(self.service.can_disclose())
        report = self.service.get_aggregate_report()
        blood = report.get("Horror", "Blood")
        self.assertEqual(blood.total_count, 3)
        self.assertEqual(blood.status, TopicStatus.DISCUSS)
        clowns = report.get("Horror", "Clowns")
        self.assertEqual(clowns.total_count, 1)
        self.assertTrue(clowns.is_custom)
        self.assertEqual(clowns.status, TopicStatus.FORBIDDEN)

    def test_sharing_progress(self):
        """Test shared and joined counts."""
        self.roster.share_form(self.players[0], self.forms[0])
        progress = self.service.get_sharing_progress()
        self.assertEqual(progress.shared_count, 1)
        self.assertEqual(progress.joined_count, 3)

    def test_meets_minimum_threshold_is_informational(self):
        """Test the threshold check without full participation."""
        self.game.minimum_players = 2
        self.game.save()
        self.roster.share_form(self.players[0], self.forms[0])
        self.roster.share_form(self.players[1], self.forms[1])

        self.assertTrue(self.service.meets_minimum_threshold())
        self.assertFalse(self.service.can_disclose())

    def test_leaving_player_no_longer_blocks_disclosure(self):
        """Test that a player who leaves stops counting as a participant."""
        self.game.minimum_players = 2
        self.game.save()
        self.roster.share_form(self.players[0], self.forms[0])
        self.roster.share_form(self.players[1], self.forms[1])

        self.roster.leave_game(self.players[2])

        self.assertTrue(self.service.can_disclose())
        self.assertEqual(
            self.service.get_aggregate_report().get("Horror", "Blood").total_count, 2
        )

    def test_deleted_form_closes_the_gate(self):
        """Test that deleting a shared form behaves as unsharing it."""
        self.share_all()
        self.assertTrue(self.service.can_disclose())

        self.forms[1].delete()

        self.assertFalse(self.service.can_disclose())
        self.assertTrue(self.service.get_aggregate_report().is_empty)

    def test_form_not_owned_by_player_is_treated_as_unshared(self):
        """Test that an inconsistent roster entry is ignored with a warning."""
        self.share_all()
        GamePlayer.objects.filter(game=self.game, player=self.players[2]).update(
            consent_form=self.forms[0]
        )

        with self.assertLogs("games.services.consent_aggregation", level="WARNING"):
            snapshot = self.service.get_roster_snapshot()

        shared = [entry.shared_form_id for entry in snapshot]
        self.assertEqual(shared.count(None), 1)
        self.assertFalse(self.service.can_disclose())

    def test_overview_for_dm_with_open_gate(self):
        """Test the overview once every player shared."""
        self.share_all()

        overview = self.service.get_consent_overview(self.dm)

        self.assertTrue(overview["can_disclose"])
        self.assertTrue(overview["meets_minimum_threshold"])
        self.assertEqual(overview["shared_count"], 3)
        self.assertEqual(overview["joined_count"], 3)
        self.assertEqual(overview["minimum_players"], 3)
        self.assertEqual(
            overview["aggregate"]["Horror"]["Blood"]["status"], TopicStatus.DISCUSS
        )

    def test_overview_hides_aggregate_while_gate_closed(self):
        """Test that the overview carries no aggregate while the gate is closed."""
        self.roster.share_form(self.players[0], self.forms[0])

        overview = self.service.get_consent_overview(self.dm)

        self.assertFalse(overview["can_disclose"])
        self.assertIsNone(overview["aggregate"])
        self.assertEqual(overview["shared_count"], 1)

    def test_overview_is_dm_only(self):
        """Test that players cannot request the overview."""
        self.share_all()
        with self.assertRaises(ValidationError):
            self.service.get_consent_overview(self.players[0])

    def test_overview_never_names_players(self):
        """Test that no username or form id appears in the overview."""
        self.share_all()

        overview = self.service.get_consent_overview(self.dm)

        text = str(overview)
        for player in self.players:
            self.assertNotIn(player.username, text)
        self.assertNotIn("consent_form", text)

    def test_database_errors_propagate(self):
        """Test that a failing store read surfaces as DatabaseError."""
        self.share_all()
        with patch.object(
            GameConsentService,
            "get_responses_by_form",
            side_effect=DatabaseError("connection lost"),
        ):
            with self.assertRaises(DatabaseError):
                self.service.get_aggregate_report()
