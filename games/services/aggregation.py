"""
Consent aggregation engine for games.

This module turns the consent forms shared with a game into one anonymized
verdict per topic. It works on plain snapshot values (RosterEntry,
TopicResponse) and performs no database access or logging; loading the
snapshot is the job of GameConsentService.

Disclosure is all-or-nothing. SharingGate decides whether a game's aggregate
may be shown at all: every joined player must have shared a form and the
number of shared forms must reach the game's minimum_players. While the gate
is closed the engine returns an empty report.

Topics are grouped by the exact (category, topic_name) strings, so a custom
entry whose name matches a predefined topic lands in the same group. Within a
group the verdict is decided by presence, not majority: one red makes the
topic forbidden, otherwise one yellow makes it a topic to discuss, otherwise
it is safe.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from consent.models import ComfortLevel

from ..models import GamePlayer

TopicKey = Tuple[str, str]


class TopicStatus:
    """Aggregate verdict for a topic."""

    SAFE = "safe"
    DISCUSS = "discuss"
    FORBIDDEN = "forbidden"

    CHOICES = [
        (SAFE, "Safe"),
        (DISCUSS, "Discuss"),
        (FORBIDDEN, "Forbidden"),
    ]


@dataclass(frozen=True)
class RosterEntry:
    """Snapshot of one roster entry as seen by the engine."""

    player_id: int
    status: str
    shared_form_id: Optional[int] = None

    @property
    def is_joined(self) -> bool:
        return self.status == GamePlayer.JOINED

    @property
    def has_shared(self) -> bool:
        return self.shared_form_id is not None


@dataclass(frozen=True)
class TopicResponse:
    """Snapshot of one topic rating from a shared consent form."""

    category: str
    topic_name: str
    rating: str
    is_custom: bool = False


@dataclass(frozen=True)
class SharingProgress:
    """How many joined players have shared a form. Safe to show at any time."""

    shared_count: int
    joined_count: int

    @property
    def everyone_shared(self) -> bool:
        return self.joined_count > 0 and self.shared_count == self.joined_count


_STATUS_BY_LEVEL = {
    ComfortLevel.RED: TopicStatus.FORBIDDEN,
    ComfortLevel.YELLOW: TopicStatus.DISCUSS,
    ComfortLevel.GREEN: TopicStatus.SAFE,
}


@dataclass(frozen=True)
class TopicVerdict:
    """Final counts and status for one topic, as handed out by AggregateReport."""

    status: str
    red_count: int
    yellow_count: int
    green_count: int
    total_count: int
    is_custom: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class TopicTally:
    """Running counts for one (category, topic_name) group."""

    red_count: int = 0
    yellow_count: int = 0
    green_count: int = 0
    is_custom: bool = False

    def add(self, response: TopicResponse) -> None:
        if response.rating == ComfortLevel.RED:
            self.red_count += 1
        elif response.rating == ComfortLevel.YELLOW:
            self.yellow_count += 1
        else:
            self.green_count += 1
        if response.is_custom:
            self.is_custom = True

    @property
    def total_count(self) -> int:
        return self.red_count + self.yellow_count + self.green_count

    @property
    def status(self) -> str:
        counts = {
            ComfortLevel.RED: self.red_count,
            ComfortLevel.YELLOW: self.yellow_count,
            ComfortLevel.GREEN: self.green_count,
        }
        worst = ComfortLevel.most_severe(
            level for level, count in counts.items() if count
        )
        # An empty tally never reaches a report
        return _STATUS_BY_LEVEL[worst or ComfortLevel.GREEN]

    def verdict(self) -> TopicVerdict:
        return TopicVerdict(
            status=self.status,
            red_count=self.red_count,
            yellow_count=self.yellow_count,
            green_count=self.green_count,
            total_count=self.total_count,
            is_custom=self.is_custom,
        )


class AggregateReport:
    """
    Read-only per-topic verdicts for a game.

    Holds only counts and derived statuses, never player identities. An empty
    report means either the gate is closed or no shared form has responses;
    callers tell the two apart with SharingGate.can_disclose.
    """

    def __init__(self, tallies: Optional[Mapping[TopicKey, TopicTally]] = None):
        self._topics: Dict[str, Dict[str, TopicVerdict]] = {}
        for category, topic_name in sorted(tallies or {}):
            self._topics.setdefault(category, {})[topic_name] = tallies[
                (category, topic_name)
            ].verdict()

    def __len__(self) -> int:
        return sum(len(topics) for topics in self._topics.values())

    def __bool__(self) -> bool:
        return bool(self._topics)

    @property
    def is_empty(self) -> bool:
        return not self._topics

    def categories(self) -> List[str]:
        return list(self._topics)

    def topics(self, category: str) -> Dict[str, TopicVerdict]:
        return dict(self._topics.get(category, {}))

    def get(self, category: str, topic_name: str) -> Optional[TopicVerdict]:
        return self._topics.get(category, {}).get(topic_name)

    def to_dict(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """Return category -> topic -> {status, counts, is_custom}."""
        return {
            category: {name: verdict.as_dict() for name, verdict in topics.items()}
            for category, topics in self._topics.items()
        }


class SharingGate:
    """Disclosure policy for a game's aggregate consent data."""

    @staticmethod
    def joined(roster: Iterable[RosterEntry]) -> List[RosterEntry]:
        return [entry for entry in roster if entry.is_joined]

    @classmethod
    def sharing_progress(cls, roster: Iterable[RosterEntry]) -> SharingProgress:
        joined = cls.joined(roster)
        shared = [entry for entry in joined if entry.has_shared]
        return SharingProgress(shared_count=len(shared), joined_count=len(joined))

    @classmethod
    def can_disclose(cls, roster: Iterable[RosterEntry], minimum_players: int) -> bool:
        """
        Check whether aggregate data may be shown for this roster.

        True only if at least one player has joined, every joined player has
        shared a form, and the number of shared forms reaches minimum_players.
        """
        progress = cls.sharing_progress(roster)
        return progress.everyone_shared and progress.shared_count >= minimum_players

    @classmethod
    def meets_minimum_threshold(
        cls, roster: Iterable[RosterEntry], minimum_players: int
    ) -> bool:
        """
        Check only whether enough joined players have shared a form.

        Informational: it ignores players who have not shared yet, so it must
        never be used on its own to authorize disclosure.
        """
        return cls.sharing_progress(roster).shared_count >= minimum_players


class AggregationEngine:
    """Combines shared consent forms into per-topic verdicts."""

    def __init__(self, gate: type = SharingGate):
        self.gate = gate

    def shared_form_ids(self, roster: Iterable[RosterEntry]) -> List[int]:
        """Distinct form ids shared by joined players, in roster order."""
        ids: Dict[int, None] = {}
        for entry in self.gate.joined(roster):
            if entry.has_shared:
                ids.setdefault(entry.shared_form_id, None)
        return list(ids)

    def aggregate(
        self,
        game: Any,
        roster: Iterable[RosterEntry],
        responses_by_form: Mapping[int, Iterable[TopicResponse]],
    ) -> AggregateReport:
        """
        Aggregate the shared forms of a game.

        Args:
            game: Anything with a minimum_players attribute
            roster: Snapshot of the game's roster entries
            responses_by_form: Responses keyed by consent form id

        Returns:
            AggregateReport, empty while the sharing gate is closed
        """
        roster = list(roster)
        if not self.gate.can_disclose(roster, game.minimum_players):
            return AggregateReport()

        tallies: Dict[TopicKey, TopicTally] = {}
        for form_id in self.shared_form_ids(roster):
            for response in responses_by_form.get(form_id, ()):
                if response.rating not in ComfortLevel.values:
                    continue
                key = (response.category, response.topic_name)
                if key not in tallies:
                    tallies[key] = TopicTally()
                tallies[key].add(response)

        return AggregateReport(tallies)
