"""
Learning Service: Application layer orchestrator.

Coordinates the stores, the learning engine and the scheduler for each review,
and assembles read models (weak concepts, dashboards, due cards).
"""

import dataclasses
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from mastery.domain.constants import (
    DASHBOARD_DUE_SCAN_LIMIT,
    DASHBOARD_WEAKEST_COUNT,
    DEFAULT_DUE_LIMIT,
    DEFAULT_WEAK_LIMIT,
    DEFAULT_WEAK_THRESHOLD,
    INITIAL_CONFIDENCE,
    MASTERED_BOX,
    MAX_BOX,
    MS_PER_DAY,
    RECENT_ACTIVITY_DAYS,
)
from mastery.domain.errors import InvalidEvidenceError, NotFoundError
from mastery.domain.evidence import flashcard_evidence, quiz_evidence, validate_outcome
from mastery.domain.models import Concept, Flashcard, ReviewEvent, ReviewTargetType
from mastery.domain.ports import Clock, ConceptStore, FlashcardStore, ReviewEventSink, SystemClock

from . import id_service
from .dashboard import DashboardOverview, summarize
from .engine import LearningEngine
from .locks import KeyedLock
from .prioritizer import WeakConcept, WeakConceptPrioritizer
from .scheduler import LeitnerScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOutcome:
    """Result of reviewing one flashcard."""

    concept: Concept
    flashcard: Flashcard
    event: ReviewEvent
    previous_confidence: float
    previous_box: int


@dataclass(frozen=True)
class QuizQuestionResult:
    question_id: str
    was_correct: bool
    response_time_ms: int = 0


@dataclass(frozen=True)
class QuizSubmissionSummary:
    total_questions: int
    correct_answers: int
    score_percentage: float
    total_time_ms: int
    concept: Concept


@dataclass(frozen=True)
class ConceptDetails:
    concept: Concept
    flashcards: list[Flashcard]
    current_confidence: float
    due_flashcards: int = 0

    @property
    def flashcard_count(self) -> int:
        return len(self.flashcards)

    @property
    def mastered_flashcards(self) -> int:
        return sum(1 for card in self.flashcards if card.box >= MASTERED_BOX)


class LearningService:
    """
    Use cases for creating concepts, reviewing them and reporting progress.

    Follows Dependency Inversion: depends on the store ports, not concrete
    adapters. Writes to a concept are serialized per concept id.
    """

    def __init__(
        self,
        concepts: ConceptStore,
        flashcards: FlashcardStore,
        events: ReviewEventSink,
        engine: LearningEngine,
        scheduler: LeitnerScheduler | None = None,
        prioritizer: WeakConceptPrioritizer | None = None,
        clock: Clock | None = None,
        weak_limit: int = DEFAULT_WEAK_LIMIT,
        weak_threshold: float = DEFAULT_WEAK_THRESHOLD,
    ):
        self._concepts = concepts
        self._flashcards = flashcards
        self._events = events
        self._engine = engine
        self._scheduler = scheduler or LeitnerScheduler()
        self._prioritizer = prioritizer or WeakConceptPrioritizer()
        self._clock = clock or SystemClock()
        self._locks = KeyedLock()
        self.weak_limit = weak_limit
        self.weak_threshold = weak_threshold

    # ------------------------------------------------------------------
    # Concepts and cards
    # ------------------------------------------------------------------

    async def create_concept(
        self, deck_id: str, name: str, description: str | None = None
    ) -> Concept:
        if not name or not name.strip():
            raise InvalidEvidenceError("Concept name cannot be empty")

        concept = Concept(
            id=id_service.concept_id(),
            deck_id=deck_id,
            name=name.strip(),
            description=description.strip() if description else None,
            confidence=INITIAL_CONFIDENCE,
            last_reviewed_at=None,
        )
        await self._concepts.save(concept)
        logger.info(f"Created concept {concept.id} ({concept.name!r}) in deck {deck_id}")
        return concept

    async def add_flashcard(self, concept_id: str, front: str, back: str) -> Flashcard:
        await self._require_concept(concept_id)
        if not front.strip() or not back.strip():
            raise InvalidEvidenceError("Flashcard front and back cannot be empty")

        card = Flashcard(
            id=id_service.flashcard_id(),
            concept_id=concept_id,
            front=front.strip(),
            back=back.strip(),
        )
        await self._flashcards.save(card)
        return card

    async def delete_concept(self, concept_id: str) -> None:
        async with self._locks.hold(concept_id):
            if not await self._concepts.delete(concept_id):
                raise NotFoundError("Concept", concept_id)
        logger.info(f"Deleted concept {concept_id}")

    async def get_concept_details(self, concept_id: str) -> ConceptDetails:
        concept = await self._require_concept(concept_id)
        cards = await self._flashcards.list_for_concept(concept_id)
        now = self._clock.now_ms()
        return ConceptDetails(
            concept=concept,
            flashcards=cards,
            current_confidence=self._engine.current_confidence(concept, now),
            due_flashcards=sum(1 for card in cards if self._scheduler.is_due(card, now)),
        )

    async def list_concepts(self, deck_id: str) -> list[tuple[Concept, float]]:
        """A deck's concepts paired with their confidence decayed to now."""
        now = self._clock.now_ms()
        concepts = await self._concepts.list_for_deck(deck_id)
        return [(c, self._engine.current_confidence(c, now)) for c in concepts]

    async def current_confidence(self, concept_id: str) -> float:
        concept = await self._require_concept(concept_id)
        return self._engine.current_confidence(concept, self._clock.now_ms())

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def review_flashcard(
        self, flashcard_id: str, level: Any, response_time_ms: int = 0
    ) -> ReviewOutcome:
        """
        Grade a flashcard.

        1. Validate the rating.
        2. Update the concept's confidence through the learning engine.
        3. Move the card on the Leitner ladder.
        4. Log a review event.
        """
        evidence = flashcard_evidence(level, response_time_ms)
        concept_id = (await self._require_flashcard(flashcard_id)).concept_id

        async with self._locks.hold(concept_id):
            # Re-read under the lock; an overlapping review may have moved the card.
            card = await self._require_flashcard(flashcard_id)
            concept = await self._require_concept(card.concept_id)
            now = self._clock.now_ms()

            updated = self._engine.apply_flashcard_evidence(concept, evidence, now)
            scheduled = self._scheduler.schedule(card, evidence.level, now)
            event = ReviewEvent(
                id=id_service.review_event_id(),
                concept_id=concept.id,
                target_type=ReviewTargetType.FLASHCARD,
                target_id=card.id,
                outcome=validate_outcome(evidence.outcome),
                response_time_ms=evidence.response_time_ms,
                timestamp=now,
            )

            await self._concepts.save(updated)
            await self._flashcards.save(scheduled)
            await self._events.append(event)

        logger.info(
            f"Reviewed {card.id} as {evidence.level.name}: box {card.box} -> {scheduled.box}, "
            f"confidence {concept.confidence:.3f} -> {updated.confidence:.3f}"
        )
        return ReviewOutcome(
            concept=updated,
            flashcard=scheduled,
            event=event,
            previous_confidence=concept.confidence,
            previous_box=card.box,
        )

    async def submit_quiz_result(
        self,
        concept_id: str,
        question_id: str,
        was_correct: bool,
        response_time_ms: int = 0,
    ) -> Concept:
        evidence = quiz_evidence(was_correct, response_time_ms)

        async with self._locks.hold(concept_id):
            concept = await self._require_concept(concept_id)
            now = self._clock.now_ms()

            updated = self._engine.apply_quiz_evidence(concept, evidence, now)
            await self._concepts.save(updated)
            await self._events.append(
                ReviewEvent(
                    id=id_service.review_event_id(),
                    concept_id=concept_id,
                    target_type=ReviewTargetType.QUIZ,
                    target_id=question_id,
                    outcome=validate_outcome(evidence.outcome),
                    response_time_ms=evidence.response_time_ms,
                    timestamp=now,
                )
            )

        logger.info(
            f"Quiz {question_id} on {concept_id} correct={was_correct}: "
            f"confidence {concept.confidence:.3f} -> {updated.confidence:.3f}"
        )
        return updated

    async def submit_quiz_batch(
        self, concept_id: str, results: Sequence[QuizQuestionResult]
    ) -> QuizSubmissionSummary:
        """Apply several quiz answers in order and summarize the attempt."""
        concept = await self._require_concept(concept_id)
        correct = 0
        total_time = 0

        for result in results:
            concept = await self.submit_quiz_result(
                concept_id, result.question_id, result.was_correct, result.response_time_ms
            )
            correct += int(result.was_correct)
            total_time += result.response_time_ms

        score = (correct / len(results)) * 100.0 if results else 0.0
        return QuizSubmissionSummary(
            total_questions=len(results),
            correct_answers=correct,
            score_percentage=score,
            total_time_ms=total_time,
            concept=concept,
        )

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------

    async def get_due_flashcards(
        self, limit: int = DEFAULT_DUE_LIMIT, include_new: bool = True
    ) -> list[Flashcard]:
        max_box = MAX_BOX if include_new else MAX_BOX - 1
        due = await self._flashcards.due(self._clock.now_ms(), max_box=max_box, limit=limit)
        return self._scheduler.order_due(due)

    async def get_weak_concepts(
        self,
        deck_id: str,
        limit: int | None = None,
        threshold: float | None = None,
    ) -> list[WeakConcept]:
        """Rank a deck's weak concepts; None falls back to the configured limit and threshold."""
        limit = self.weak_limit if limit is None else limit
        threshold = self.weak_threshold if threshold is None else threshold
        candidates = await self._concepts.weakest(deck_id, limit)
        return self._prioritizer.rank(
            candidates, self._clock.now_ms(), threshold=threshold, limit=limit
        )

    async def get_dashboard_overview(self, deck_id: str) -> DashboardOverview:
        now = self._clock.now_ms()
        concepts = await self._concepts.list_for_deck(deck_id)
        summary = summarize(concepts)
        weakest = await self._concepts.weakest(deck_id, DASHBOARD_WEAKEST_COUNT)

        concept_ids = {c.id for c in concepts}
        due = await self._flashcards.due(now, max_box=MAX_BOX, limit=DASHBOARD_DUE_SCAN_LIMIT)
        recent = await self._events.events_between(now - RECENT_ACTIVITY_DAYS * MS_PER_DAY, now)

        return DashboardOverview(
            deck_id=deck_id,
            total_concepts=summary.total_concepts,
            average_confidence=summary.average_confidence,
            distribution=summary.distribution,
            weakest_concepts=weakest,
            due_flashcards=sum(1 for card in due if card.concept_id in concept_ids),
            recent_reviews=sum(1 for event in recent if event.concept_id in concept_ids),
        )

    async def _require_concept(self, concept_id: str) -> Concept:
        concept = await self._concepts.get_by_id(concept_id)
        if concept is None:
            raise NotFoundError("Concept", concept_id)
        return concept

    async def _require_flashcard(self, flashcard_id: str) -> Flashcard:
        card = await self._flashcards.get_by_id(flashcard_id)
        if card is None:
            raise NotFoundError("Flashcard", flashcard_id)
        return card


def as_dict(obj: Any) -> dict[str, Any]:
    """Serialize a result dataclass for JSON output."""
    return dataclasses.asdict(obj)
