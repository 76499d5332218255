"""Game services for business logic."""

from .aggregation import (
    AggregateReport,
    AggregationEngine,
    RosterEntry,
    SharingGate,
    SharingProgress,
    TopicResponse,
    TopicStatus,
    TopicTally,
    TopicVerdict,
)
from .consent_aggregation import GameConsentService
from .game_services import GameService, RosterService

__all__ = [
    "AggregateReport",
    "AggregationEngine",
    "GameConsentService",
    "GameService",
    "RosterEntry",
    "RosterService",
    "SharingGate",
    "SharingProgress",
    "TopicResponse",
    "TopicStatus",
    "TopicTally",
    "TopicVerdict",
]
