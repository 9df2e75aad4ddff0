"""
Domain models for concepts, flashcards and review history.

These are pure data structures with no I/O or external dependencies.
All timestamps are epoch milliseconds.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum

from .constants import INITIAL_CONFIDENCE, MAX_BOX, MIN_BOX


class ConfidenceLevel(IntEnum):
    """
    Self-reported recall quality for a flashcard review.

    Ordered from weakest to strongest, so comparisons such as
    ``level >= ConfidenceLevel.KNOWN_FAIRLY`` are meaningful.
    """

    UNKNOWN = 0
    KNOWN_LITTLE = 1
    KNOWN_FAIRLY = 2
    KNOWN_WELL = 3
    MASTERED = 4


class ReviewTargetType(str, Enum):
    FLASHCARD = "flashcard"
    QUIZ = "quiz"


@dataclass(frozen=True)
class Concept:
    """
    A unit of knowledge within a deck.

    Attributes:
        id: Stable concept ID.
        deck_id: The owning deck.
        name: Short display name.
        description: Optional longer text.
        confidence: Posterior probability (0.0-1.0) that the learner has mastered it.
        last_reviewed_at: Epoch ms of the last confidence update, None if never reviewed.
    """

    id: str
    deck_id: str
    name: str
    description: str | None = None
    confidence: float = INITIAL_CONFIDENCE
    last_reviewed_at: int | None = None


@dataclass(frozen=True)
class Flashcard:
    """
    A study item tied to one concept, scheduled on a Leitner ladder.

    Box 1 is the weakest stage (reviewed daily), box 5 the strongest (monthly).
    ``next_review_at`` is derived from ``box`` and ``last_seen_at`` by the scheduler.
    """

    id: str
    concept_id: str
    front: str
    back: str
    box: int = MIN_BOX
    last_seen_at: int | None = None
    next_review_at: int | None = None

    def __post_init__(self) -> None:
        if not MIN_BOX <= self.box <= MAX_BOX:
            raise ValueError(f"box must be in [{MIN_BOX}, {MAX_BOX}], got {self.box}")


@dataclass(frozen=True)
class ReviewEvent:
    """
    Append-only analytics record of a single review.

    Attributes:
        outcome: Graded score in [0.0, 1.0].
        timestamp: Epoch ms at which the review happened.
    """

    id: str
    concept_id: str
    target_type: ReviewTargetType
    target_id: str
    outcome: float
    response_time_ms: int
    timestamp: int
