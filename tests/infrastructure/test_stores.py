"""Port contract tests run against both the in-memory and the SQLite adapters."""

import pytest

from mastery.domain.models import Concept, Flashcard, ReviewEvent, ReviewTargetType
from mastery.infrastructure.adapters import InMemoryStore, SqliteStore

T0 = 1_704_067_200_000


@pytest.fixture(params=["memory", "sqlite"])
def bundle(request, tmp_path):
    if request.param == "memory":
        store = InMemoryStore()
    else:
        store = SqliteStore(tmp_path / "mastery.db")
    yield store
    store.close()


def make_concept(cid, confidence=0.3, deck_id="bio"):
    return Concept(id=cid, deck_id=deck_id, name=cid.upper(), confidence=confidence)


def make_card(cid, concept_id, box=1, next_review_at=None):
    return Flashcard(
        id=cid,
        concept_id=concept_id,
        front="Q",
        back="A",
        box=box,
        last_seen_at=None,
        next_review_at=next_review_at,
    )


def make_event(eid, concept_id, timestamp):
    return ReviewEvent(
        id=eid,
        concept_id=concept_id,
        target_type=ReviewTargetType.QUIZ,
        target_id="q1",
        outcome=1.0,
        response_time_ms=500,
        timestamp=timestamp,
    )


@pytest.mark.asyncio
async def test_concept_round_trip_and_upsert(bundle):
    concept = Concept(
        id="k1", deck_id="bio", name="Osmosis", description="water", confidence=0.3
    )
    await bundle.concepts.save(concept)
    assert await bundle.concepts.get_by_id("k1") == concept

    updated = Concept(
        id="k1",
        deck_id="bio",
        name="Osmosis",
        description="water",
        confidence=0.7,
        last_reviewed_at=T0,
    )
    await bundle.concepts.save(updated)
    assert await bundle.concepts.get_by_id("k1") == updated
    assert await bundle.concepts.get_by_id("missing") is None


@pytest.mark.asyncio
async def test_list_and_weakest(bundle):
    for cid, confidence, deck in [
        ("a", 0.5, "bio"),
        ("b", 0.1, "bio"),
        ("c", 0.9, "bio"),
        ("x", 0.0, "chem"),
    ]:
        await bundle.concepts.save(make_concept(cid, confidence, deck))

    assert [c.id for c in await bundle.concepts.list_for_deck("bio")] == ["a", "b", "c"]
    assert [c.id for c in await bundle.concepts.weakest("bio", 2)] == ["b", "a"]
    assert await bundle.concepts.weakest("bio", 0) == []
    assert await bundle.concepts.list_for_deck("none") == []


@pytest.mark.asyncio
async def test_flashcards(bundle):
    await bundle.concepts.save(make_concept("k1"))
    card = make_card("c1", "k1")
    await bundle.flashcards.save(card)

    assert await bundle.flashcards.get_by_id("c1") == card
    assert await bundle.flashcards.list_for_concept("k1") == [card]

    moved = make_card("c1", "k1", box=3, next_review_at=T0)
    await bundle.flashcards.save(moved)
    assert await bundle.flashcards.get_by_id("c1") == moved

    assert await bundle.flashcards.delete("c1") is True
    assert await bundle.flashcards.delete("c1") is False


@pytest.mark.asyncio
async def test_due_filters_and_orders(bundle):
    await bundle.concepts.save(make_concept("k1"))
    cards = [
        make_card("later", "k1", box=2, next_review_at=T0 + 1),
        make_card("overdue", "k1", box=2, next_review_at=T0 - 100),
        make_card("on-time", "k1", box=1, next_review_at=T0),
        make_card("new", "k1"),
        make_card("top", "k1", box=5, next_review_at=T0 - 200),
    ]
    for card in cards:
        await bundle.flashcards.save(card)

    due = await bundle.flashcards.due(T0, max_box=5, limit=10)
    assert [c.id for c in due] == ["new", "top", "overdue", "on-time"]

    due = await bundle.flashcards.due(T0, max_box=4, limit=10)
    assert [c.id for c in due] == ["new", "overdue", "on-time"]

    assert [c.id for c in await bundle.flashcards.due(T0, max_box=5, limit=2)] == ["new", "top"]


@pytest.mark.asyncio
async def test_events(bundle):
    await bundle.concepts.save(make_concept("k1"))
    await bundle.concepts.save(make_concept("k2"))
    await bundle.events.append(make_event("e2", "k1", T0 + 10))
    await bundle.events.append(make_event("e1", "k1", T0))
    await bundle.events.append(make_event("e3", "k2", T0 + 20))

    assert [e.id for e in await bundle.events.events_for_concept("k1")] == ["e1", "e2"]
    assert [e.id for e in await bundle.events.events_between(T0, T0 + 10)] == ["e1", "e2"]
    assert [e.id for e in await bundle.events.events_between(T0 + 11, T0 + 20)] == ["e3"]

    [event] = await bundle.events.events_for_concept("k2")
    assert event == make_event("e3", "k2", T0 + 20)


@pytest.mark.asyncio
async def test_delete_concept_cascades(bundle):
    await bundle.concepts.save(make_concept("k1"))
    await bundle.concepts.save(make_concept("k2"))
    await bundle.flashcards.save(make_card("c1", "k1"))
    await bundle.flashcards.save(make_card("c2", "k2"))
    await bundle.events.append(make_event("e1", "k1", T0))

    assert await bundle.concepts.delete("k1") is True

    assert await bundle.concepts.get_by_id("k1") is None
    assert await bundle.flashcards.get_by_id("c1") is None
    assert await bundle.events.events_for_concept("k1") == []
    assert await bundle.flashcards.get_by_id("c2") is not None
    assert await bundle.concepts.delete("k1") is False
