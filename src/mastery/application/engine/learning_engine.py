"""
Learning Engine: applies evidence to concepts through one configured strategy.

Pure computation: no database or UI access. The strategy is bound at
construction and cannot be swapped afterwards.
"""

import logging

from mastery.domain.evidence import FlashcardEvidence, QuizEvidence
from mastery.domain.models import Concept
from mastery.domain.ports import Clock, SystemClock

from .strategy import ConfidenceUpdateStrategy

logger = logging.getLogger(__name__)


class LearningEngine:
    """
    Thin orchestrator over a ConfidenceUpdateStrategy.

    ``now`` defaults to the injected clock, so callers normally omit it and
    tests pass a FixedClock.
    """

    def __init__(self, strategy: ConfidenceUpdateStrategy, clock: Clock | None = None):
        self._strategy = strategy
        self._clock = clock or SystemClock()

    @property
    def strategy(self) -> ConfidenceUpdateStrategy:
        return self._strategy

    def apply_flashcard_evidence(
        self,
        concept: Concept,
        evidence: FlashcardEvidence,
        now: int | None = None,
    ) -> Concept:
        """Return the concept with confidence updated from a flashcard rating."""
        now = self._now(now)
        updated = self._strategy.update_from_flashcard(concept, evidence, now)
        logger.debug(
            f"Flashcard evidence {evidence.level.name} on {concept.id}: "
            f"{concept.confidence:.4f} -> {updated.confidence:.4f}"
        )
        return updated

    def apply_quiz_evidence(
        self,
        concept: Concept,
        evidence: QuizEvidence,
        now: int | None = None,
    ) -> Concept:
        """Return the concept with confidence updated from a quiz answer."""
        now = self._now(now)
        updated = self._strategy.update_from_quiz(concept, evidence, now)
        logger.debug(
            f"Quiz evidence correct={evidence.was_correct} on {concept.id}: "
            f"{concept.confidence:.4f} -> {updated.confidence:.4f}"
        )
        return updated

    def current_confidence(self, concept: Concept, now: int | None = None) -> float:
        """
        Confidence after decay up to ``now``, without new evidence.

        Useful for dashboards; the stored value is left untouched.
        """
        return self._strategy.apply_decay(concept, self._now(now)).confidence

    def _now(self, now: int | None) -> int:
        return self._clock.now_ms() if now is None else now
