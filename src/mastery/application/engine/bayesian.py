"""
Baseline Bayesian confidence strategy.

Key properties:
- Confidence converges smoothly towards the evidence.
- Strong evidence (quiz answers, extreme ratings) moves it faster.
- Exponential time decay rewards spaced repetition.
"""

import dataclasses
from collections.abc import Mapping

from mastery.domain.constants import (
    BASELINE_MAX_CONFIDENCE,
    BASELINE_MIN_CONFIDENCE,
    BASELINE_QUIZ_CORRECT,
    BASELINE_QUIZ_INCORRECT,
    DEFAULT_DECAY_RATE,
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
    ConfidenceLevel.UNKNOWN: 0.10,
    ConfidenceLevel.KNOWN_LITTLE: 0.30,
    ConfidenceLevel.KNOWN_FAIRLY: 0.60,
    ConfidenceLevel.KNOWN_WELL: 0.80,
    ConfidenceLevel.MASTERED: 0.95,
}


class BayesianStrategy(ConfidenceUpdateStrategy):
    """Plain Bayesian updater, clamped to [0, 1]."""

    min_confidence = BASELINE_MIN_CONFIDENCE
    max_confidence = BASELINE_MAX_CONFIDENCE

    def __init__(
        self,
        decay_rate: float = DEFAULT_DECAY_RATE,
        flashcard_likelihoods: Mapping[ConfidenceLevel, float] | None = None,
        quiz_correct: float = BASELINE_QUIZ_CORRECT,
        quiz_incorrect: float = BASELINE_QUIZ_INCORRECT,
    ):
        self.decay_rate = check_decay_rate(decay_rate)
        self.flashcard_likelihoods = check_likelihood_table(
            flashcard_likelihoods or FLASHCARD_LIKELIHOODS
        )
        self.quiz_correct = check_likelihood("quiz_correct", quiz_correct)
        self.quiz_incorrect = check_likelihood("quiz_incorrect", quiz_incorrect)

    def update_from_flashcard(
        self, concept: Concept, evidence: FlashcardEvidence, now: int
    ) -> Concept:
        decayed = self.apply_decay(concept, now)
        likelihood = self.flashcard_likelihoods[evidence.level]
        return self._fuse(decayed, likelihood, now)

    def update_from_quiz(self, concept: Concept, evidence: QuizEvidence, now: int) -> Concept:
        decayed = self.apply_decay(concept, now)
        likelihood = self.quiz_correct if evidence.was_correct else self.quiz_incorrect
        return self._fuse(decayed, likelihood, now)

    def apply_decay(self, concept: Concept, now: int) -> Concept:
        days = days_elapsed(concept.last_reviewed_at, now)
        if days <= 0:
            return concept

        decayed = concept.confidence * self.decay_rate**days
        return dataclasses.replace(concept, confidence=self.clamp(decayed))

    def _fuse(self, decayed: Concept, likelihood: float, now: int) -> Concept:
        posterior = bayesian_update(decayed.confidence, likelihood)
        return dataclasses.replace(
            decayed, confidence=self.clamp(posterior), last_reviewed_at=now
        )

    def __repr__(self) -> str:
        return f"BayesianStrategy(decay_rate={self.decay_rate})"
