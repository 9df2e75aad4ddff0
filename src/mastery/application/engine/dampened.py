"""
Dampened Bayesian confidence strategy.

Same fusion as the baseline, with extra damping so a single review cannot swing
belief far:

1. Inertia: blend the posterior back towards the prior.
2. Delta cap: limit the per-event change to +/- max_daily_delta.
3. Bounds: keep confidence in [0.05, 0.995], away from the 0/1 fixed points.

Well-mastered concepts (confidence > 0.8) decay at half the exponent, and a
single quiz miss after mastery is treated as a likely slip.
"""

import dataclasses
from collections.abc import Mapping

from mastery.domain.constants import (
    ANOMALY_TOLERANCE_THRESHOLD,
    DAMPENED_MAX_CONFIDENCE,
    DAMPENED_MIN_CONFIDENCE,
    DAMPENED_QUIZ_CORRECT,
    DAMPENED_QUIZ_INCORRECT,
    DAMPENED_QUIZ_INCORRECT_TOLERANT,
    DEFAULT_DECAY_RATE,
    DEFAULT_INERTIA,
    DEFAULT_MAX_DAILY_DELTA,
    SLOW_DECAY_FACTOR,
    SLOW_DECAY_THRESHOLD,
)
from mastery.domain.evidence import FlashcardEvidence, QuizEvidence
from mastery.domain.models import Concept, ConfidenceLevel

from .strategy import (
    ConfidenceUpdateStrategy,
    bayesian_update,
    check_decay_rate,
    check_likelihood,
    check_likelihood_table,
    days_elapsed,
)

FLASHCARD_LIKELIHOODS: dict[ConfidenceLevel, float] = {
    ConfidenceLevel.UNKNOWN: 0.15,
    ConfidenceLevel.KNOWN_LITTLE: 0.35,
    ConfidenceLevel.KNOWN_FAIRLY: 0.60,
    ConfidenceLevel.KNOWN_WELL: 0.80,
    ConfidenceLevel.MASTERED: 0.95,
}


class DampenedBayesianStrategy(ConfidenceUpdateStrategy):
    """Bayesian updater with inertia, delta capping and mastery-aware decay."""

    min_confidence = DAMPENED_MIN_CONFIDENCE
    max_confidence = DAMPENED_MAX_CONFIDENCE

    def __init__(
        self,
        decay_rate: float = DEFAULT_DECAY_RATE,
        inertia: float = DEFAULT_INERTIA,
        max_daily_delta: float = DEFAULT_MAX_DAILY_DELTA,
        flashcard_likelihoods: Mapping[ConfidenceLevel, float] | None = None,
    ):
        if not 0.0 <= inertia < 1.0:
            raise ValueError(f"inertia must be in [0, 1), got {inertia}")
        if not max_daily_delta > 0.0:
            raise ValueError(f"max_daily_delta must be positive, got {max_daily_delta}")

        self.decay_rate = check_decay_rate(decay_rate)
        self.inertia = inertia
        self.max_daily_delta = max_daily_delta
        self.flashcard_likelihoods = check_likelihood_table(
            flashcard_likelihoods or FLASHCARD_LIKELIHOODS
        )
        self.quiz_correct = check_likelihood("quiz_correct", DAMPENED_QUIZ_CORRECT)

    def update_from_flashcard(
        self, concept: Concept, evidence: FlashcardEvidence, now: int
    ) -> Concept:
        decayed = self.apply_decay(concept, now)
        likelihood = self.flashcard_likelihoods[evidence.level]
        return self._fuse(decayed, likelihood, now)

    def update_from_quiz(self, concept: Concept, evidence: QuizEvidence, now: int) -> Concept:
        decayed = self.apply_decay(concept, now)

        if evidence.was_correct:
            likelihood = self.quiz_correct
        elif decayed.confidence > ANOMALY_TOLERANCE_THRESHOLD:
            likelihood = DAMPENED_QUIZ_INCORRECT_TOLERANT
        else:
            likelihood = DAMPENED_QUIZ_INCORRECT

        return self._fuse(decayed, likelihood, now)

    def apply_decay(self, concept: Concept, now: int) -> Concept:
        days = days_elapsed(concept.last_reviewed_at, now)
        if days <= 0:
            return concept

        if concept.confidence > SLOW_DECAY_THRESHOLD:
            days *= SLOW_DECAY_FACTOR

        decayed = concept.confidence * self.decay_rate**days
        return dataclasses.replace(concept, confidence=self.clamp(decayed))

    def _fuse(self, decayed: Concept, likelihood: float, now: int) -> Concept:
        prior = decayed.confidence
        posterior = bayesian_update(prior, likelihood)
        blended = self._apply_inertia(prior, posterior)
        capped = self._cap_delta(prior, blended)
        return dataclasses.replace(decayed, confidence=self.clamp(capped), last_reviewed_at=now)

    def _apply_inertia(self, prior: float, posterior: float) -> float:
        return prior * self.inertia + posterior * (1.0 - self.inertia)

    def _cap_delta(self, prior: float, updated: float) -> float:
        delta = updated - prior
        capped = min(max(delta, -self.max_daily_delta), self.max_daily_delta)
        return prior + capped

    def __repr__(self) -> str:
        return (
            f"DampenedBayesianStrategy(decay_rate={self.decay_rate}, "
            f"inertia={self.inertia}, max_daily_delta={self.max_daily_delta})"
        )
