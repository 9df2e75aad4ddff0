# Domain Package
from .errors import ArithmeticDegenerateError, InvalidEvidenceError, MasteryError, NotFoundError
from .evidence import FlashcardEvidence, QuizEvidence
from .models import Concept, ConfidenceLevel, Flashcard, ReviewEvent, ReviewTargetType
from .ports import Clock, ConceptStore, FixedClock, FlashcardStore, ReviewEventSink, SystemClock

__all__ = [
    "Concept",
    "ConfidenceLevel",
    "Flashcard",
    "ReviewEvent",
    "ReviewTargetType",
    "FlashcardEvidence",
    "QuizEvidence",
    "ConceptStore",
    "FlashcardStore",
    "ReviewEventSink",
    "Clock",
    "SystemClock",
    "FixedClock",
    "MasteryError",
    "NotFoundError",
    "InvalidEvidenceError",
    "ArithmeticDegenerateError",
]
