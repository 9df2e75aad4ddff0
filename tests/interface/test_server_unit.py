import pytest
from fastapi.testclient import TestClient

from mastery.consts import VERSION
from mastery.domain.constants import MS_PER_DAY
from mastery.server import app, get_service

T0 = 1_704_067_200_000


@pytest.fixture
def client(service):
    # The lifespan only runs inside a `with` block, so the service is injected directly.
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def create_concept(client, deck="bio", name="Osmosis"):
    response = client.post(f"/decks/{deck}/concepts", json={"name": name})
    assert response.status_code == 201
    return response.json()


def create_card(client, concept_id):
    response = client.post(
        f"/concepts/{concept_id}/flashcards", json={"front": "Q", "back": "A"}
    )
    assert response.status_code == 201
    return response.json()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == VERSION


def test_get_version(client):
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {"version": VERSION}


def test_create_and_get_concept(client):
    concept = create_concept(client)
    assert concept["confidence"] == 0.3
    assert concept["deck_id"] == "bio"

    card = create_card(client, concept["id"])
    assert card["box"] == 1

    response = client.get(f"/concepts/{concept['id']}")
    assert response.status_code == 200
    data = response.json()
    assert data["flashcard_count"] == 1
    assert data["current_confidence"] == 0.3
    assert data["due_flashcards"] == 1


def test_unknown_concept_is_404(client):
    response = client.get("/concepts/concept_missing")
    assert response.status_code == 404
    assert "concept_missing" in response.json()["detail"]

    assert client.post(
        "/concepts/concept_missing/flashcards", json={"front": "Q", "back": "A"}
    ).status_code == 404


def test_blank_concept_name_is_422(client):
    response = client.post("/decks/bio/concepts", json={"name": " "})
    assert response.status_code == 422


def test_review_flashcard(client):
    concept = create_concept(client)
    card = create_card(client, concept["id"])

    response = client.post(
        f"/flashcards/{card['id']}/review", json={"level": "known_well", "response_time_ms": 900}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["concept"]["confidence"] == pytest.approx(0.24 / 0.38)
    assert data["flashcard"]["box"] == 2
    assert data["flashcard"]["next_review_at"] == T0 + 3 * MS_PER_DAY
    assert data["event"]["target_type"] == "flashcard"
    assert data["event"]["outcome"] == 0.75
    assert data["previous_box"] == 1


def test_review_with_numeric_level(client):
    concept = create_concept(client)
    card = create_card(client, concept["id"])

    response = client.post(f"/flashcards/{card['id']}/review", json={"level": 0})

    assert response.status_code == 200
    assert response.json()["event"]["outcome"] == 0.0


def test_review_invalid_level_is_422(client):
    concept = create_concept(client)
    card = create_card(client, concept["id"])

    response = client.post(f"/flashcards/{card['id']}/review", json={"level": 9})

    assert response.status_code == 422
    assert "Invalid confidence level" in response.json()["detail"]


def test_review_unknown_flashcard_is_404(client):
    response = client.post("/flashcards/card_missing/review", json={"level": "mastered"})
    assert response.status_code == 404


def test_quiz(client):
    concept = create_concept(client)

    response = client.post(
        f"/concepts/{concept['id']}/quiz",
        json={
            "answers": [
                {"question_id": "q1", "was_correct": True, "response_time_ms": 700},
                {"question_id": "q2", "was_correct": False},
            ]
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["score_percentage"] == 50.0
    assert data["total_time_ms"] == 700
    assert data["concept"]["confidence"] == pytest.approx(0.475)


def test_quiz_requires_answers(client):
    concept = create_concept(client)
    response = client.post(f"/concepts/{concept['id']}/quiz", json={"answers": []})
    assert response.status_code == 422


def test_due_flashcards(client):
    concept = create_concept(client)
    card = create_card(client, concept["id"])

    response = client.get("/flashcards/due", params={"limit": 5})

    assert response.status_code == 200
    assert [c["id"] for c in response.json()] == [card["id"]]


def test_weak_concepts(client):
    concept = create_concept(client)

    response = client.get("/decks/bio/weak")

    assert response.status_code == 200
    [item] = response.json()
    assert item["concept"]["id"] == concept["id"]
    assert item["recommendation"] == "Practice flashcards regularly and take quizzes"
    assert client.get("/decks/bio/weak", params={"threshold": 0.1}).json() == []


def test_dashboard(client):
    create_concept(client, name="A")
    create_concept(client, name="B")

    response = client.get("/decks/bio/dashboard")

    assert response.status_code == 200
    data = response.json()
    assert data["total_concepts"] == 2
    assert data["average_confidence"] == pytest.approx(0.3)
    assert data["distribution"]["learning"] == 2
    assert data["due_flashcards"] == 0


def test_delete_concept(client):
    concept = create_concept(client)

    assert client.delete(f"/concepts/{concept['id']}").status_code == 204
    assert client.get(f"/concepts/{concept['id']}").status_code == 404
    assert client.delete(f"/concepts/{concept['id']}").status_code == 404


def test_weak_concepts_use_configured_defaults(client, service):
    service.weak_limit = 1
    service.weak_threshold = 0.35
    create_concept(client, name="A")
    create_concept(client, name="B")

    assert len(client.get("/decks/bio/weak").json()) == 1
    assert len(client.get("/decks/bio/weak", params={"limit": 5}).json()) == 2
    assert client.get("/decks/bio/weak", params={"threshold": 0.3}).json() == []
