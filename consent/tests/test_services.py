"""Tests for ConsentFormService."""

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase

from consent.models import ConsentForm, ConsentResponse
from consent.services import ConsentFormService
from games.models import Game, GamePlayer

User = get_user_model()


def rating(category, topic, level, is_custom=False):
    return {
        "topic_category": category,
        "topic_name": topic,
        "comfort_level": level,
        "is_custom": is_custom,
    }


class ConsentFormServiceTest(TestCase):
    """Test creating, replacing and deleting consent forms."""

    def setUp(self):
        """Set up test data."""
        self.user = User.objects.create_user(
            username="player", email="player@example.com", password="TestPass123!"
        )
        self.other = User.objects.create_user(
            username="other", email="other@example.com", password="TestPass123!"
        )
        self.service = ConsentFormService()

    def create_default_form(self):
        return self.service.create_form(
            owner=self.user,
            name="Default",
            responses=[
                rating("Horror", "Blood", "green"),
                rating("Horror", "Clowns", "red", is_custom=True),
            ],
        )

    def test_create_form(self):
        """Test creating a form with its responses."""
        form = self.service.create_form(
            owner=self.user,
            name="  Default  ",
            responses=[rating(" Horror ", " Blood ", "yellow")],
            is_public=True,
            movie_rating="PG-13",
            follow_up_response="No spiders please",
        )

        self.assertEqual(form.name, "Default")
        self.assertTrue(form.is_public)
        self.assertEqual(form.movie_rating, "PG-13")
        response = form.responses.get()
        self.assertEqual(response.topic_category, "Horror")
        self.assertEqual(response.topic_name, "Blood")
        self.assertEqual(response.comfort_level, "yellow")

    def test_create_form_preserves_topic_case(self):
        """Test that stripping whitespace leaves letter case alone."""
        form = self.service.create_form(
            owner=self.user,
            name="Default",
            responses=[
                rating("Relationships", "Romance", "green"),
                rating("Relationships", "romance", "red", is_custom=True),
            ],
        )
        names = sorted(form.responses.values_list("topic_name", flat=True))
        self.assertEqual(names, ["Romance", "romance"])

    def test_create_form_requires_responses(self):
        """Test that a form needs at least one response."""
        with self.assertRaises(ValidationError):
            self.service.create_form(owner=self.user, name="Empty", responses=[])
        self.assertFalse(ConsentForm.objects.exists())

    def test_create_form_rejects_invalid_rating(self):
        """Test that unknown comfort levels are rejected and nothing is saved."""
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_form(
                owner=self.user,
                name="Bad",
                responses=[
                    rating("Horror", "Blood", "green"),
                    rating("Horror", "Gore", "purple"),
                ],
            )
        self.assertIn("invalid comfort level", str(ctx.exception))
        self.assertFalse(ConsentForm.objects.exists())

    def test_create_form_rejects_duplicate_topics(self):
        """Test that the same topic cannot be rated twice after stripping."""
        with self.assertRaises(ValidationError):
            self.service.create_form(
                owner=self.user,
                name="Dupes",
                responses=[
                    rating("Horror", "Blood", "green"),
                    rating("Horror", "Blood ", "red"),
                ],
            )

    def test_create_form_rejects_missing_fields(self):
        """Test that category and topic are required."""
        for bad in (
            {"topic_name": "Blood", "comfort_level": "green"},
            {"topic_category": "Horror", "comfort_level": "green"},
            {"topic_category": "Horror", "topic_name": "   ", "comfort_level": "green"},
            "not a dict",
        ):
            with self.assertRaises(ValidationError):
                self.service.create_form(owner=self.user, name="Bad", responses=[bad])

    def test_create_form_rejects_non_boolean_custom_flag(self):
        """Test is_custom must be a boolean."""
        bad = rating("Horror", "Blood", "green")
        bad["is_custom"] = "yes"
        with self.assertRaises(ValidationError):
            self.service.create_form(owner=self.user, name="Bad", responses=[bad])

    def test_create_form_rejects_unknown_movie_rating(self):
        """Test movie_rating must come from the scale."""
        with self.assertRaises(ValidationError):
            self.service.create_form(
                owner=self.user,
                name="Bad",
                responses=[rating("Horror", "Blood", "green")],
                movie_rating="X",
            )

    def test_update_form_replaces_all_responses(self):
        """Test that an update writes the new set and drops the old one."""
        form = self.create_default_form()

        self.service.update_form(
            form=form,
            updated_by=self.user,
            name="Renamed",
            responses=[rating("Sex", "Nudity", "yellow")],
        )

        form.refresh_from_db()
        self.assertEqual(form.name, "Renamed")
        self.assertEqual(
            list(form.responses.values_list("topic_name", flat=True)), ["Nudity"]
        )
        self.assertEqual(ConsentResponse.objects.count(), 1)

    def test_update_form_keeps_share_token(self):
        """Test that updating does not issue a new share token."""
        form = self.create_default_form()
        token = form.share_token

        form = self.service.update_form(
            form=form,
            updated_by=self.user,
            name="Renamed",
            responses=[rating("Horror", "Blood", "red")],
        )

        self.assertEqual(form.share_token, token)

    def test_failed_update_leaves_form_untouched(self):
        """Test that invalid responses do not clear the existing set."""
        form = self.create_default_form()
        with self.assertRaises(ValidationError):
            self.service.update_form(
                form=form,
                updated_by=self.user,
                name="Renamed",
                responses=[rating("Horror", "Blood", "purple")],
            )
        form.refresh_from_db()
        self.assertEqual(form.name, "Default")
        self.assertEqual(form.responses.count(), 2)

    def test_only_owner_can_update(self):
        """Test that other users cannot update a form."""
        form = self.create_default_form()
        with self.assertRaises(ValidationError):
            self.service.update_form(
                form=form,
                updated_by=self.other,
                name="Hijacked",
                responses=[rating("Horror", "Blood", "green")],
            )

    def test_delete_form_unshares_it(self):
        """Test deleting a form leaves roster entries with no form."""
        form = self.create_default_form()
        dm = User.objects.create_user(
            username="dm", email="dm@example.com", password="TestPass123!"
        )
        game = Game.objects.create(name="Night Market", dm=dm)
        entry = GamePlayer.objects.create(game=game, player=self.user, consent_form=form)

        self.service.delete_form(form=form, requesting_user=self.user)

        entry.refresh_from_db()
        self.assertIsNone(entry.consent_form)
        self.assertFalse(ConsentForm.objects.exists())
        self.assertFalse(ConsentResponse.objects.exists())

    def test_only_owner_can_delete(self):
        """Test that other users cannot delete a form."""
        form = self.create_default_form()
        with self.assertRaises(ValidationError):
            self.service.delete_form(form=form, requesting_user=self.other)
        self.assertTrue(ConsentForm.objects.filter(pk=form.pk).exists())

    def test_get_public_forms(self):
        """Test listing a user's public forms only."""
        self.create_default_form()
        public = self.service.create_form(
            owner=self.user,
            name="Public",
            responses=[rating("Horror", "Blood", "green")],
            is_public=True,
        )
        self.assertEqual(list(self.service.get_public_forms("player")), [public])
        self.assertEqual(list(self.service.get_public_forms("nobody")), [])

    def test_get_form_by_share_token(self):
        """Test looking up a form by share token."""
        form = self.create_default_form()
        self.assertEqual(self.service.get_form_by_share_token(form.share_token), form)
        self.assertIsNone(self.service.get_form_by_share_token("missing"))
        self.assertIsNone(self.service.get_form_by_share_token(""))

    def test_get_user_forms(self):
        """Test listing the user's own forms."""
        form = self.create_default_form()
        self.service.create_form(
            owner=self.other,
            name="Theirs",
            responses=[rating("Horror", "Blood", "green")],
        )
        self.assertEqual(list(self.service.get_user_forms(self.user)), [form])
