"""
Game consent service for the DM-facing consent view.

This module provides the GameConsentService class. It loads a consistent
snapshot of a game's roster and shared responses, and hands it to the pure
SharingGate and AggregationEngine. Store errors (django.db.DatabaseError)
propagate to the caller unchanged.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.db import transaction

from consent.models import ConsentResponse

from ..models import Game
from .aggregation import (
    AggregateReport,
    AggregationEngine,
    RosterEntry,
    SharingGate,
    SharingProgress,
    TopicResponse,
)

logger = logging.getLogger(__name__)

ResponsesByForm = Dict[int, List[TopicResponse]]


class GameConsentService:
    """Service exposing a game's sharing progress and aggregated consent."""

    def __init__(self, game: Game, engine: Optional[AggregationEngine] = None):
        """
        Initialize the service for a game.

        Args:
            game: The game to report on
            engine: Aggregation engine to use (defaults to AggregationEngine())
        """
        self.game = game
        self.engine = engine or AggregationEngine()
        self.gate = self.engine.gate

    def get_roster_snapshot(self) -> List[RosterEntry]:
        """
        Load the game's roster as RosterEntry values.

        A shared form that no longer exists or is not owned by the roster
        entry's player is treated as not shared and logged as a warning.
        """
        entries = self.game.players.select_related("consent_form").order_by(
            "joined_at", "pk"
        )
        snapshot = []
        for entry in entries:
            form_id = entry.consent_form_id
            if form_id is not None:
                form = entry.consent_form
                if form is None or form.owner_id != entry.player_id:
                    logger.warning(
                        f"Roster entry {entry.pk} in game {self.game.pk} references "
                        f"consent form {form_id} the player does not own; "
                        f"treating it as not shared"
                    )
                    form_id = None
            snapshot.append(
                RosterEntry(
                    player_id=entry.player_id,
                    status=entry.status,
                    shared_form_id=form_id,
                )
            )
        return snapshot

    def get_responses_by_form(self, form_ids: List[int]) -> ResponsesByForm:
        """Load the responses of the given forms as TopicResponse values."""
        responses: ResponsesByForm = defaultdict(list)
        if not form_ids:
            return dict(responses)
        rows = ConsentResponse.objects.filter(consent_form_id__in=form_ids).values_list(
            "consent_form_id",
            "topic_category",
            "topic_name",
            "comfort_level",
            "is_custom",
        )
        for form_id, category, topic_name, level, is_custom in rows:
            responses[form_id].append(
                TopicResponse(
                    category=category,
                    topic_name=topic_name,
                    rating=level,
                    is_custom=is_custom,
                )
            )
        return dict(responses)

    def load_snapshot(self) -> Tuple[List[RosterEntry], ResponsesByForm]:
        """
        Load the roster and, when the gate is open, the shared responses.

        Both reads happen in one transaction so the report never mixes two
        states of the roster.
        """
        with transaction.atomic():
            roster = self.get_roster_snapshot()
            if not self.gate.can_disclose(roster, self.game.minimum_players):
                return roster, {}
            responses = self.get_responses_by_form(self.engine.shared_form_ids(roster))
        return roster, responses

    def can_disclose(self) -> bool:
        """Check whether the game's aggregate consent data may be shown."""
        return self.gate.can_disclose(
            self.get_roster_snapshot(), self.game.minimum_players
        )

    def meets_minimum_threshold(self) -> bool:
        """Check whether enough joined players have shared (informational only)."""
        return self.gate.meets_minimum_threshold(
            self.get_roster_snapshot(), self.game.minimum_players
        )

    def get_sharing_progress(self) -> SharingProgress:
        """Return how many joined players have shared a form."""
        return self.gate.sharing_progress(self.get_roster_snapshot())

    def get_aggregate_report(self) -> AggregateReport:
        """Return the game's aggregate report, empty while the gate is closed."""
        roster, responses = self.load_snapshot()
        return self.engine.aggregate(self.game, roster, responses)

    def get_consent_overview(self, requesting_user: AbstractUser) -> Dict[str, Any]:
        """
        Get the DM's consent overview for the game.

        Args:
            requesting_user: The user asking for the overview

        Returns:
            Dictionary with sharing progress, gate state and, when the gate
            is open, the aggregate by category and topic

        Raises:
            ValidationError: If the requesting user is not the game's DM
        """
        if not self.game.is_dm(requesting_user):
            raise ValidationError("Only the DM can view a game's consent overview")

        roster, responses = self.load_snapshot()
        progress = self.gate.sharing_progress(roster)
        disclosed = self.gate.can_disclose(roster, self.game.minimum_players)
        report = self.engine.aggregate(self.game, roster, responses)

        logger.debug(
            f"Consent overview for game {self.game.pk}: "
            f"{progress.shared_count}/{progress.joined_count} shared, "
            f"disclosed={disclosed}"
        )

        return {
            "game_id": self.game.pk,
            "game_name": self.game.name,
            "minimum_players": self.game.minimum_players,
            "shared_count": progress.shared_count,
            "joined_count": progress.joined_count,
            "can_disclose": disclosed,
            "meets_minimum_threshold": self.gate.meets_minimum_threshold(
                roster, self.game.minimum_players
            ),
            "aggregate": report.to_dict() if disclosed else None,
        }
