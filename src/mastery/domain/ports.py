"""
Ports (interfaces) for persistence and time.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

import time
from abc import ABC, abstractmethod

from .models import Concept, Flashcard, ReviewEvent


class ConceptStore(ABC):
    """
    Port for loading and saving concepts.

    Implementations:
        - InMemoryStore: dict-backed, for tests and ephemeral sessions.
        - SqliteStore: stdlib sqlite3 database file.
    """

    @abstractmethod
    async def get_by_id(self, concept_id: str) -> Concept | None:
        pass

    @abstractmethod
    async def save(self, concept: Concept) -> None:
        """Insert or replace a concept."""
        pass

    @abstractmethod
    async def list_for_deck(self, deck_id: str) -> list[Concept]:
        pass

    @abstractmethod
    async def weakest(self, deck_id: str, limit: int) -> list[Concept]:
        """
        Fetch the lowest-confidence concepts of a deck.

        Returns:
            Up to ``limit`` concepts, ordered by confidence ascending.
        """
        pass

    @abstractmethod
    async def delete(self, concept_id: str) -> bool:
        """
        Remove a concept together with its flashcards and review history.

        Returns:
            True if a concept was removed.
        """
        pass


class FlashcardStore(ABC):
    """Port for loading and saving flashcards."""

    @abstractmethod
    async def get_by_id(self, flashcard_id: str) -> Flashcard | None:
        pass

    @abstractmethod
    async def save(self, flashcard: Flashcard) -> None:
        pass

    @abstractmethod
    async def list_for_concept(self, concept_id: str) -> list[Flashcard]:
        pass

    @abstractmethod
    async def due(self, now: int, max_box: int, limit: int) -> list[Flashcard]:
        """
        Fetch flashcards due at ``now``.

        A card is due if it was never scheduled or its next_review_at <= now.
        Only cards with box <= max_box are returned.
        """
        pass

    @abstractmethod
    async def delete(self, flashcard_id: str) -> bool:
        pass


class ReviewEventSink(ABC):
    """Append-only log of review events."""

    @abstractmethod
    async def append(self, event: ReviewEvent) -> None:
        pass

    @abstractmethod
    async def events_for_concept(self, concept_id: str) -> list[ReviewEvent]:
        """Return a concept's events sorted by timestamp ascending."""
        pass

    @abstractmethod
    async def events_between(self, start: int, end: int) -> list[ReviewEvent]:
        """Return events with start <= timestamp <= end, oldest first."""
        pass


class Clock(ABC):
    """Source of the current time in epoch milliseconds."""

    @abstractmethod
    def now_ms(self) -> int:
        pass


class SystemClock(Clock):
    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000


class FixedClock(Clock):
    """A clock frozen at a given instant. Call ``advance`` to move it."""

    def __init__(self, now_ms: int):
        self._now = now_ms

    def now_ms(self) -> int:
        return self._now

    def advance(self, ms: int) -> None:
        self._now += ms
