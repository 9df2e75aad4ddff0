"""
Leitner box scheduler for flashcards.

Box transitions for a rating:
- UNKNOWN, KNOWN_LITTLE -> back to box 1
- KNOWN_FAIRLY          -> stay
- KNOWN_WELL, MASTERED  -> up one box (max 5)

The next review is ``now + interval_days(box) * MS_PER_DAY``.
"""

import dataclasses
from collections.abc import Iterable, Mapping

from mastery.domain.constants import BOX_INTERVAL_DAYS, MAX_BOX, MIN_BOX, MS_PER_DAY
from mastery.domain.models import ConfidenceLevel, Flashcard


class LeitnerScheduler:
    """Deterministic box-ladder scheduling. Stateless apart from the interval table."""

    def __init__(self, intervals: Mapping[int, int] | None = None):
        intervals = dict(intervals or BOX_INTERVAL_DAYS)
        missing = [b for b in range(MIN_BOX, MAX_BOX + 1) if b not in intervals]
        if missing:
            raise ValueError(f"Interval table is missing boxes: {missing}")
        self.intervals = intervals

    def next_box(self, box: int, level: ConfidenceLevel) -> int:
        _check_box(box)
        if level <= ConfidenceLevel.KNOWN_LITTLE:
            return MIN_BOX
        if level == ConfidenceLevel.KNOWN_FAIRLY:
            return box
        return min(box + 1, MAX_BOX)

    def interval_days(self, box: int) -> int:
        _check_box(box)
        return self.intervals[box]

    def next_review_at(self, box: int, now: int) -> int:
        return now + self.interval_days(box) * MS_PER_DAY

    def schedule(self, flashcard: Flashcard, level: ConfidenceLevel, now: int) -> Flashcard:
        """Return the flashcard moved to its new box and due time."""
        box = self.next_box(flashcard.box, level)
        return dataclasses.replace(
            flashcard,
            box=box,
            last_seen_at=now,
            next_review_at=self.next_review_at(box, now),
        )

    @staticmethod
    def is_due(flashcard: Flashcard, now: int) -> bool:
        """Never-scheduled cards are always due."""
        return flashcard.next_review_at is None or flashcard.next_review_at <= now

    @staticmethod
    def order_due(flashcards: Iterable[Flashcard]) -> list[Flashcard]:
        """
        Order due cards for study: lowest box first, then least recently seen.

        Never-seen cards sort before seen ones within a box.
        """
        return sorted(
            flashcards,
            key=lambda card: (
                card.box,
                card.last_seen_at is not None,
                card.last_seen_at or 0,
            ),
        )


def _check_box(box: int) -> None:
    if not MIN_BOX <= box <= MAX_BOX:
        raise ValueError(f"box must be in [{MIN_BOX}, {MAX_BOX}], got {box}")
