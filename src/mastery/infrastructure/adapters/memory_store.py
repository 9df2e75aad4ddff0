"""
In-memory store: dict-backed adapters for every persistence port.

Used by tests and by sessions without a configured database.
"""

import logging

from mastery.domain.models import Concept, Flashcard, ReviewEvent
from mastery.domain.ports import ConceptStore, FlashcardStore, ReviewEventSink

logger = logging.getLogger(__name__)


class InMemoryReviewEventSink(ReviewEventSink):
    def __init__(self) -> None:
        self._events: list[ReviewEvent] = []

    async def append(self, event: ReviewEvent) -> None:
        self._events.append(event)

    async def events_for_concept(self, concept_id: str) -> list[ReviewEvent]:
        events = [e for e in self._events if e.concept_id == concept_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def events_between(self, start: int, end: int) -> list[ReviewEvent]:
        events = [e for e in self._events if start <= e.timestamp <= end]
        return sorted(events, key=lambda e: e.timestamp)

    def purge_concept(self, concept_id: str) -> None:
        self._events = [e for e in self._events if e.concept_id != concept_id]


class InMemoryFlashcardStore(FlashcardStore):
    def __init__(self) -> None:
        self._cards: dict[str, Flashcard] = {}

    async def get_by_id(self, flashcard_id: str) -> Flashcard | None:
        return self._cards.get(flashcard_id)

    async def save(self, flashcard: Flashcard) -> None:
        self._cards[flashcard.id] = flashcard

    async def list_for_concept(self, concept_id: str) -> list[Flashcard]:
        return [c for c in self._cards.values() if c.concept_id == concept_id]

    async def due(self, now: int, max_box: int, limit: int) -> list[Flashcard]:
        due = [
            c
            for c in self._cards.values()
            if c.box <= max_box and (c.next_review_at is None or c.next_review_at <= now)
        ]
        # Most overdue first; never-scheduled cards lead.
        due.sort(key=lambda c: (c.next_review_at is not None, c.next_review_at or 0))
        return due[: max(limit, 0)]

    async def delete(self, flashcard_id: str) -> bool:
        return self._cards.pop(flashcard_id, None) is not None

    def purge_concept(self, concept_id: str) -> None:
        self._cards = {k: c for k, c in self._cards.items() if c.concept_id != concept_id}


class InMemoryConceptStore(ConceptStore):
    """
    Concept store that cascades deletes to the given card store and event sink.
    """

    def __init__(
        self,
        flashcards: InMemoryFlashcardStore | None = None,
        events: InMemoryReviewEventSink | None = None,
    ) -> None:
        self._concepts: dict[str, Concept] = {}
        self._flashcards = flashcards
        self._events = events

    async def get_by_id(self, concept_id: str) -> Concept | None:
        return self._concepts.get(concept_id)

    async def save(self, concept: Concept) -> None:
        self._concepts[concept.id] = concept

    async def list_for_deck(self, deck_id: str) -> list[Concept]:
        return [c for c in self._concepts.values() if c.deck_id == deck_id]

    async def weakest(self, deck_id: str, limit: int) -> list[Concept]:
        concepts = await self.list_for_deck(deck_id)
        return sorted(concepts, key=lambda c: c.confidence)[: max(limit, 0)]

    async def delete(self, concept_id: str) -> bool:
        if self._concepts.pop(concept_id, None) is None:
            return False
        if self._flashcards is not None:
            self._flashcards.purge_concept(concept_id)
        if self._events is not None:
            self._events.purge_concept(concept_id)
        logger.debug(f"Deleted concept {concept_id} with its cards and events")
        return True


class InMemoryStore:
    """Bundle of in-memory adapters sharing one cascade."""

    def __init__(self) -> None:
        self.flashcards = InMemoryFlashcardStore()
        self.events = InMemoryReviewEventSink()
        self.concepts = InMemoryConceptStore(self.flashcards, self.events)

    def close(self) -> None:
        pass
