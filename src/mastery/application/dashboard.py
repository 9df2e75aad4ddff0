"""
Dashboard aggregation over a deck's concepts.

Buckets use a half-open partition so every concept is counted exactly once:

    beginner    [0.0, 0.3)
    learning    [0.3, 0.6)
    proficient  [0.6, 0.8)
    mastered    [0.8, 1.0]
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from mastery.domain.constants import BEGINNER_UPPER, LEARNING_UPPER, PROFICIENT_UPPER
from mastery.domain.models import Concept


@dataclass(frozen=True)
class MasteryDistribution:
    beginner: int = 0
    learning: int = 0
    proficient: int = 0
    mastered: int = 0

    @property
    def total(self) -> int:
        return self.beginner + self.learning + self.proficient + self.mastered

    def as_dict(self) -> dict[str, int]:
        return {
            "beginner": self.beginner,
            "learning": self.learning,
            "proficient": self.proficient,
            "mastered": self.mastered,
        }


@dataclass(frozen=True)
class DashboardSummary:
    total_concepts: int
    average_confidence: float | None  # None means "no data", not zero
    distribution: MasteryDistribution


@dataclass(frozen=True)
class DashboardOverview:
    """Everything the deck dashboard shows, assembled by the learning service."""

    deck_id: str
    total_concepts: int
    average_confidence: float | None
    distribution: MasteryDistribution
    weakest_concepts: list[Concept] = field(default_factory=list)
    due_flashcards: int = 0
    recent_reviews: int = 0


def mastery_bucket(confidence: float) -> str:
    if confidence < BEGINNER_UPPER:
        return "beginner"
    if confidence < LEARNING_UPPER:
        return "learning"
    if confidence < PROFICIENT_UPPER:
        return "proficient"
    return "mastered"


def average_confidence(concepts: Sequence[Concept]) -> float | None:
    if not concepts:
        return None
    return sum(c.confidence for c in concepts) / len(concepts)


def mastery_distribution(concepts: Sequence[Concept]) -> MasteryDistribution:
    counts = {"beginner": 0, "learning": 0, "proficient": 0, "mastered": 0}
    for concept in concepts:
        counts[mastery_bucket(concept.confidence)] += 1
    return MasteryDistribution(**counts)


def summarize(concepts: Sequence[Concept]) -> DashboardSummary:
    return DashboardSummary(
        total_concepts=len(concepts),
        average_confidence=average_confidence(concepts),
        distribution=mastery_distribution(concepts),
    )
