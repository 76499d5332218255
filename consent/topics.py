"""
Predefined consent topics from the RPG Consent Checklist.

Each topic can be rated as:
- Green: Enthusiastic consent; bring it on!
- Yellow: Okay if veiled or offstage; might be okay onstage but requires
  discussion ahead of time; uncertain
- Red: Hard line; do not include

The catalog only drives form entry. Aggregation never fills in topics that
nobody rated.
"""

from typing import Dict, List, Tuple

CONSENT_TOPICS: Dict[str, Tuple[str, ...]] = {
    "Horror": (
        "Bugs",
        "Blood",
        "Demons",
        "Eyeballs",
        "Gore",
        "Harm to animals",
        "Harm to children",
        "Rats",
        "Spiders",
    ),
    "Mental and Physical Health": (
        "Cancer",
        "Claustrophobia",
        "Freezing to death",
        "Gaslighting",
        "Genocide",
        "Heatstroke",
        "Natural disasters",
        "Paralysis/physical restraint",
        "Police/police aggression",
        "Pregnancy/miscarriage/abortion",
        "Self-harm",
        "Severe weather",
        "Sexual assault",
        "Starvation",
        "Terrorism",
        "Torture",
        "Thirst",
    ),
    "Relationships": (
        "Romance",
        "Fade to black",
        "Explicit",
        "Between PCs and NPCs",
        "Between PCs",
    ),
    "Sex": (
        "Romance",
        "Fade to black",
        "Explicit",
        "Between PCs and NPCs",
        "Between PCs",
    ),
    "Social and Cultural Issues": (
        "Homophobia",
        "Racism",
        "Real-world religion",
        "Sexism",
        "Specific cultural issues",
    ),
}

MOVIE_RATINGS: Tuple[str, ...] = ("G", "PG", "PG-13", "R", "NC-17", "Other")

MOVIE_RATING_CHOICES = [(rating, rating) for rating in MOVIE_RATINGS]


def get_topic_catalog() -> Dict[str, List[str]]:
    """Return the predefined topics as plain lists, keyed by category."""
    return {category: list(topics) for category, topics in CONSENT_TOPICS.items()}


def is_predefined_topic(category: str, topic_name: str) -> bool:
    """Check whether a (category, topic) pair is part of the predefined catalog."""
    return topic_name in CONSENT_TOPICS.get(category, ())
