"""
SQLite Store: Infrastructure adapter over a local database file.

Implements the concept, flashcard and review-event ports on one shared
connection. Deleting a concept cascades to its flashcards and review history.
"""

import logging
import sqlite3
from pathlib import Path

from mastery.domain.models import Concept, Flashcard, ReviewEvent, ReviewTargetType
from mastery.domain.ports import ConceptStore, FlashcardStore, ReviewEventSink

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS concepts (
    id TEXT PRIMARY KEY,
    deck_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    confidence REAL NOT NULL,
    last_reviewed_at INTEGER
);
CREATE INDEX IF NOT EXISTS idx_concepts_deck ON concepts (deck_id, confidence);

CREATE TABLE IF NOT EXISTS flashcards (
    id TEXT PRIMARY KEY,
    concept_id TEXT NOT NULL REFERENCES concepts (id) ON DELETE CASCADE,
    front TEXT NOT NULL,
    back TEXT NOT NULL,
    box INTEGER NOT NULL CHECK (box BETWEEN 1 AND 5),
    last_seen_at INTEGER,
    next_review_at INTEGER
);
CREATE INDEX IF NOT EXISTS idx_flashcards_due ON flashcards (next_review_at);

CREATE TABLE IF NOT EXISTS review_events (
    id TEXT PRIMARY KEY,
    concept_id TEXT NOT NULL REFERENCES concepts (id) ON DELETE CASCADE,
    target_type TEXT NOT NULL,
    target_id TEXT NOT NULL,
    outcome REAL NOT NULL,
    response_time_ms INTEGER NOT NULL,
    timestamp INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_review_events_time ON review_events (timestamp);
"""


class SqliteStore:
    """
    Owns the SQLite connection and exposes one adapter per port.

    Usage:
        with SqliteStore(path) as store:
            service = LearningService(store.concepts, store.flashcards, store.events, engine)
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        # The server runs handlers on a thread pool; writes are serialized per
        # concept by the service, and sqlite serializes the rest.
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA foreign_keys = ON")
        self.conn.executescript(SCHEMA)
        logger.debug(f"Opened SQLite store at {self.db_path}")

        self.concepts = SqliteConceptStore(self.conn)
        self.flashcards = SqliteFlashcardStore(self.conn)
        self.events = SqliteReviewEventSink(self.conn)

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "SqliteStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _concept(row: sqlite3.Row) -> Concept:
    return Concept(
        id=row["id"],
        deck_id=row["deck_id"],
        name=row["name"],
        description=row["description"],
        confidence=row["confidence"],
        last_reviewed_at=row["last_reviewed_at"],
    )


def _flashcard(row: sqlite3.Row) -> Flashcard:
    return Flashcard(
        id=row["id"],
        concept_id=row["concept_id"],
        front=row["front"],
        back=row["back"],
        box=row["box"],
        last_seen_at=row["last_seen_at"],
        next_review_at=row["next_review_at"],
    )


def _event(row: sqlite3.Row) -> ReviewEvent:
    return ReviewEvent(
        id=row["id"],
        concept_id=row["concept_id"],
        target_type=ReviewTargetType(row["target_type"]),
        target_id=row["target_id"],
        outcome=row["outcome"],
        response_time_ms=row["response_time_ms"],
        timestamp=row["timestamp"],
    )


class SqliteConceptStore(ConceptStore):
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    async def get_by_id(self, concept_id: str) -> Concept | None:
        row = self.conn.execute("SELECT * FROM concepts WHERE id = ?", (concept_id,)).fetchone()
        return _concept(row) if row else None

    async def save(self, concept: Concept) -> None:
        with self.conn:
            self.conn.execute(
                "INSERT INTO concepts (id, deck_id, name, description, confidence, last_reviewed_at) "
                "VALUES (?, ?, ?, ?, ?, ?) "
                "ON CONFLICT (id) DO UPDATE SET deck_id = excluded.deck_id, "
                "name = excluded.name, description = excluded.description, "
                "confidence = excluded.confidence, last_reviewed_at = excluded.last_reviewed_at",
                (
                    concept.id,
                    concept.deck_id,
                    concept.name,
                    concept.description,
                    concept.confidence,
                    concept.last_reviewed_at,
                ),
            )

    async def list_for_deck(self, deck_id: str) -> list[Concept]:
        rows = self.conn.execute(
            "SELECT * FROM concepts WHERE deck_id = ? ORDER BY rowid", (deck_id,)
        ).fetchall()
        return [_concept(r) for r in rows]

    async def weakest(self, deck_id: str, limit: int) -> list[Concept]:
        rows = self.conn.execute(
            "SELECT * FROM concepts WHERE deck_id = ? ORDER BY confidence ASC, rowid ASC LIMIT ?",
            (deck_id, max(limit, 0)),
        ).fetchall()
        return [_concept(r) for r in rows]

    async def delete(self, concept_id: str) -> bool:
        with self.conn:
            cursor = self.conn.execute("DELETE FROM concepts WHERE id = ?", (concept_id,))
        return cursor.rowcount > 0


class SqliteFlashcardStore(FlashcardStore):
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    async def get_by_id(self, flashcard_id: str) -> Flashcard | None:
        row = self.conn.execute(
            "SELECT * FROM flashcards WHERE id = ?", (flashcard_id,)
        ).fetchone()
        return _flashcard(row) if row else None

    async def save(self, flashcard: Flashcard) -> None:
        with self.conn:
            self.conn.execute(
                "INSERT INTO flashcards "
                "(id, concept_id, front, back, box, last_seen_at, next_review_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?) "
                "ON CONFLICT (id) DO UPDATE SET concept_id = excluded.concept_id, "
                "front = excluded.front, back = excluded.back, box = excluded.box, "
                "last_seen_at = excluded.last_seen_at, next_review_at = excluded.next_review_at",
                (
                    flashcard.id,
                    flashcard.concept_id,
                    flashcard.front,
                    flashcard.back,
                    flashcard.box,
                    flashcard.last_seen_at,
                    flashcard.next_review_at,
                ),
            )

    async def list_for_concept(self, concept_id: str) -> list[Flashcard]:
        rows = self.conn.execute(
            "SELECT * FROM flashcards WHERE concept_id = ? ORDER BY rowid", (concept_id,)
        ).fetchall()
        return [_flashcard(r) for r in rows]

    async def due(self, now: int, max_box: int, limit: int) -> list[Flashcard]:
        rows = self.conn.execute(
            "SELECT * FROM flashcards "
            "WHERE box <= ? AND (next_review_at IS NULL OR next_review_at <= ?) "
            "ORDER BY next_review_at IS NOT NULL, next_review_at ASC, rowid ASC LIMIT ?",
            (max_box, now, max(limit, 0)),
        ).fetchall()
        return [_flashcard(r) for r in rows]

    async def delete(self, flashcard_id: str) -> bool:
        with self.conn:
            cursor = self.conn.execute("DELETE FROM flashcards WHERE id = ?", (flashcard_id,))
        return cursor.rowcount > 0


class SqliteReviewEventSink(ReviewEventSink):
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    async def append(self, event: ReviewEvent) -> None:
        with self.conn:
            self.conn.execute(
                "INSERT INTO review_events "
                "(id, concept_id, target_type, target_id, outcome, response_time_ms, timestamp) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    event.id,
                    event.concept_id,
                    event.target_type.value,
                    event.target_id,
                    event.outcome,
                    event.response_time_ms,
                    event.timestamp,
                ),
            )

    async def events_for_concept(self, concept_id: str) -> list[ReviewEvent]:
        rows = self.conn.execute(
            "SELECT * FROM review_events WHERE concept_id = ? ORDER BY timestamp, rowid",
            (concept_id,),
        ).fetchall()
        return [_event(r) for r in rows]

    async def events_between(self, start: int, end: int) -> list[ReviewEvent]:
        rows = self.conn.execute(
            "SELECT * FROM review_events WHERE timestamp BETWEEN ? AND ? ORDER BY timestamp, rowid",
            (start, end),
        ).fetchall()
        return [_event(r) for r in rows]
