"""Exception hierarchy for the mastery engine.

The pure algorithms never raise for in-domain input. Boundary validation and
lookups happen in the application layer, which raises these.
"""


class MasteryError(Exception):
    """Base class for all mastery errors."""


class NotFoundError(MasteryError, LookupError):
    """A referenced concept or flashcard does not exist in the store."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} not found: {entity_id}")


class InvalidEvidenceError(MasteryError, ValueError):
    """An evidence value lies outside its enumeration or range."""


class ArithmeticDegenerateError(MasteryError, ArithmeticError):
    """Bayesian fusion would divide by zero (prior or likelihood at 0/1)."""
