"""Stable, sortable IDs for concepts, flashcards and review events."""

from ulid import ULID


def generate_id(prefix: str) -> str:
    """Generate a prefixed ULID, e.g. ``concept_01J...``."""
    return f"{prefix}_{ULID()}"


def concept_id() -> str:
    return generate_id("concept")


def flashcard_id() -> str:
    return generate_id("card")


def review_event_id() -> str:
    return generate_id("review")
