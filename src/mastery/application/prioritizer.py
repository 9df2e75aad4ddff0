"""
Weak-concept prioritization.

Ranks concepts below a confidence threshold by a weighted mix of how weak they
are and how long it has been since they were last reviewed.
This is a pure computation module with no I/O.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from mastery.domain.constants import (
    CONFIDENCE_WEIGHT,
    DEFAULT_WEAK_LIMIT,
    DEFAULT_WEAK_THRESHOLD,
    MS_PER_DAY,
    NEVER_REVIEWED_PRIORITY,
    RECENT_PRIORITY,
    TIME_PRIORITY_STEPS,
    TIME_WEIGHT,
)
from mastery.domain.models import Concept

RECOMMENDATIONS = (
    (0.2, "Review flashcards daily to build foundation"),
    (0.4, "Practice flashcards regularly and take quizzes"),
    (0.6, "Take quizzes to solidify understanding"),
)
MAINTENANCE_RECOMMENDATION = "Periodic review to maintain mastery"


@dataclass(frozen=True)
class PriorityConfig:
    """
    Weights and thresholds for the priority score.

    Attributes:
        confidence_weight: Weight of (1 - confidence).
        time_weight: Weight of the recency priority.
        never_reviewed: Recency priority for concepts with no review yet.
        steps: (days, priority) pairs; the first with days_since > days wins.
        recent: Recency priority when no step matches.
    """

    confidence_weight: float = CONFIDENCE_WEIGHT
    time_weight: float = TIME_WEIGHT
    never_reviewed: float = NEVER_REVIEWED_PRIORITY
    steps: tuple[tuple[int, float], ...] = TIME_PRIORITY_STEPS
    recent: float = RECENT_PRIORITY


@dataclass(frozen=True)
class WeakConcept:
    concept: Concept
    priority: float  # 0.0 (low) to 1.0 (high)
    time_priority: float
    recommendation: str


class WeakConceptPrioritizer:
    """
    Selects and orders the concepts that most need attention.

    Stateless and side-effect free.
    """

    def __init__(self, config: PriorityConfig | None = None):
        self.config = config or PriorityConfig()

    def rank(
        self,
        concepts: Iterable[Concept],
        now: int,
        threshold: float = DEFAULT_WEAK_THRESHOLD,
        limit: int = DEFAULT_WEAK_LIMIT,
    ) -> list[WeakConcept]:
        """
        Rank concepts with confidence below ``threshold``.

        Args:
            concepts: Candidate concepts, usually the weakest N of a deck.
            now: Epoch ms used for recency.
            threshold: Only concepts strictly below this are returned.
            limit: Maximum number of results.

        Returns:
            WeakConcept entries, highest priority first. Ties keep input order.
        """
        if limit <= 0:
            return []

        ranked = [
            self._describe(concept, now) for concept in concepts if concept.confidence < threshold
        ]
        # sorted() is stable, so equal priorities keep their input order.
        ranked = sorted(ranked, key=lambda item: item.priority, reverse=True)
        return ranked[:limit]

    def priority(self, concept: Concept, now: int) -> float:
        return self._score(concept, self.time_priority(concept, now))

    def time_priority(self, concept: Concept, now: int) -> float:
        if concept.last_reviewed_at is None:
            return self.config.never_reviewed

        days_since = (now - concept.last_reviewed_at) // MS_PER_DAY
        for days, value in self.config.steps:
            if days_since > days:
                return value
        return self.config.recent

    def _score(self, concept: Concept, time_priority: float) -> float:
        return (
            self.config.confidence_weight * (1.0 - concept.confidence)
            + self.config.time_weight * time_priority
        )

    def _describe(self, concept: Concept, now: int) -> WeakConcept:
        time_priority = self.time_priority(concept, now)
        return WeakConcept(
            concept=concept,
            priority=self._score(concept, time_priority),
            time_priority=time_priority,
            recommendation=recommendation_for(concept.confidence),
        )


def recommendation_for(confidence: float) -> str:
    for upper, text in RECOMMENDATIONS:
        if confidence < upper:
            return text
    return MAINTENANCE_RECOMMENDATION
