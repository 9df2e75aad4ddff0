"""
Evidence value types and boundary validation.

Evidence is ephemeral: it is built from a review, fed to the learning engine
and then discarded. Anything that crosses into the engine should pass through
the ``parse_*`` / ``validate_*`` helpers first.
"""

from dataclasses import dataclass
from typing import Any

from .errors import InvalidEvidenceError
from .models import ConfidenceLevel

# Graded score stored on ReviewEvent for each self-rating.
LEVEL_OUTCOMES: dict[ConfidenceLevel, float] = {
    ConfidenceLevel.UNKNOWN: 0.0,
    ConfidenceLevel.KNOWN_LITTLE: 0.25,
    ConfidenceLevel.KNOWN_FAIRLY: 0.5,
    ConfidenceLevel.KNOWN_WELL: 0.75,
    ConfidenceLevel.MASTERED: 1.0,
}


@dataclass(frozen=True)
class FlashcardEvidence:
    """A graded flashcard recall."""

    level: ConfidenceLevel
    response_time_ms: int = 0

    @property
    def was_correct(self) -> bool:
        return self.level >= ConfidenceLevel.KNOWN_FAIRLY

    @property
    def outcome(self) -> float:
        return LEVEL_OUTCOMES[self.level]


@dataclass(frozen=True)
class QuizEvidence:
    """An objectively graded quiz answer."""

    was_correct: bool
    response_time_ms: int = 0

    @property
    def outcome(self) -> float:
        return 1.0 if self.was_correct else 0.0


def parse_confidence_level(value: Any) -> ConfidenceLevel:
    """
    Coerce a rating into a ConfidenceLevel.

    Accepts an existing member, its integer value (0-4) or its name in any case
    ("known_well", "MASTERED"). Anything else raises InvalidEvidenceError.
    """
    if isinstance(value, ConfidenceLevel):
        return value
    if isinstance(value, bool):
        raise InvalidEvidenceError(f"Invalid confidence level: {value!r}")
    if isinstance(value, int):
        try:
            return ConfidenceLevel(value)
        except ValueError:
            raise InvalidEvidenceError(f"Invalid confidence level: {value!r}") from None
    if isinstance(value, str):
        key = value.strip().upper().replace("-", "_").replace(" ", "_")
        if key.isdigit():
            return parse_confidence_level(int(key))
        try:
            return ConfidenceLevel[key]
        except KeyError:
            raise InvalidEvidenceError(f"Invalid confidence level: {value!r}") from None
    raise InvalidEvidenceError(f"Invalid confidence level: {value!r}")


def validate_outcome(value: float) -> float:
    """Ensure a review outcome is a finite number in [0, 1]."""
    try:
        outcome = float(value)
    except (TypeError, ValueError):
        raise InvalidEvidenceError(f"Outcome must be numeric, got {value!r}") from None
    if not 0.0 <= outcome <= 1.0:  # also rejects NaN
        raise InvalidEvidenceError(f"Outcome must be in [0, 1], got {value!r}")
    return outcome


def validate_response_time(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidEvidenceError(f"Response time must be a non-negative int, got {value!r}")
    return value


def flashcard_evidence(level: Any, response_time_ms: int = 0) -> FlashcardEvidence:
    """Build validated flashcard evidence from raw input."""
    return FlashcardEvidence(
        level=parse_confidence_level(level),
        response_time_ms=validate_response_time(response_time_ms),
    )


def quiz_evidence(was_correct: Any, response_time_ms: int = 0) -> QuizEvidence:
    """Build validated quiz evidence from raw input."""
    if not isinstance(was_correct, bool):
        raise InvalidEvidenceError(f"was_correct must be a bool, got {was_correct!r}")
    return QuizEvidence(
        was_correct=was_correct,
        response_time_ms=validate_response_time(response_time_ms),
    )
