"""
Contract and shared math for confidence update strategies.

A strategy maps (concept, evidence, now) to a new concept. Implementations are
pure: they never persist anything and always return a new Concept.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from mastery.domain.constants import MS_PER_DAY
from mastery.domain.errors import ArithmeticDegenerateError
from mastery.domain.evidence import FlashcardEvidence, QuizEvidence
from mastery.domain.models import Concept, ConfidenceLevel


class ConfidenceUpdateStrategy(ABC):
    """
    Strategy interface for updating concept confidence from evidence.

    Implementations:
        - BayesianStrategy: plain Bayesian update with exponential decay.
        - DampenedBayesianStrategy: adds inertia, a per-event delta cap and
          slower decay for well-mastered concepts.
    """

    min_confidence: float
    max_confidence: float

    @abstractmethod
    def update_from_flashcard(
        self, concept: Concept, evidence: FlashcardEvidence, now: int
    ) -> Concept:
        """Decay, then fuse a flashcard self-rating into the concept's confidence."""

    @abstractmethod
    def update_from_quiz(self, concept: Concept, evidence: QuizEvidence, now: int) -> Concept:
        """Decay, then fuse a quiz answer into the concept's confidence."""

    @abstractmethod
    def apply_decay(self, concept: Concept, now: int) -> Concept:
        """Project confidence forward to ``now`` without new evidence."""

    def clamp(self, value: float) -> float:
        return min(max(value, self.min_confidence), self.max_confidence)


def bayesian_update(prior: float, likelihood: float) -> float:
    """
    Fuse a prior with an evidence likelihood.

    posterior = (p * L) / (p * L + (1 - p) * (1 - L))
    """
    numerator = prior * likelihood
    denominator = numerator + (1.0 - prior) * (1.0 - likelihood)
    if not denominator > 0.0:
        raise ArithmeticDegenerateError(
            f"Bayesian update undefined for prior={prior}, likelihood={likelihood}"
        )
    return numerator / denominator


def days_elapsed(last_reviewed_at: int | None, now: int) -> float:
    """Fractional days since the last review, or 0.0 if never reviewed."""
    if last_reviewed_at is None:
        return 0.0
    return (now - last_reviewed_at) / MS_PER_DAY


def check_likelihood(name: str, value: float) -> float:
    if not 0.0 < value < 1.0:  # also rejects NaN
        raise ArithmeticDegenerateError(
            f"Likelihood {name}={value} must lie strictly inside (0, 1)"
        )
    return value


def check_likelihood_table(
    table: Mapping[ConfidenceLevel, float],
) -> dict[ConfidenceLevel, float]:
    """Validate a level -> likelihood table covers every level with interior values."""
    missing = [level.name for level in ConfidenceLevel if level not in table]
    if missing:
        raise ValueError(f"Likelihood table is missing levels: {missing}")
    return {level: check_likelihood(level.name, table[level]) for level in ConfidenceLevel}


def check_decay_rate(decay_rate: float) -> float:
    if not 0.0 < decay_rate <= 1.0:
        raise ValueError(f"decay_rate must be in (0, 1], got {decay_rate}")
    return decay_rate
