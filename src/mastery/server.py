import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from mastery.application.config import resolve_config
from mastery.application.factory import build_service, get_store
from mastery.application.service import LearningService, QuizQuestionResult, as_dict
from mastery.consts import VERSION
from mastery.domain.errors import ArithmeticDegenerateError, InvalidEvidenceError, NotFoundError

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("mastery.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    config = resolve_config()
    store = get_store(config)
    app.state.service = build_service(config, store=store)
    logger.info(f"Mastery Server v{VERSION} starting up ({config.strategy} strategy)...")
    yield
    # Shutdown
    store.close()
    logger.info("Mastery Server shutting down...")


app = FastAPI(
    title="Mastery Server",
    description="Confidence tracking and flashcard scheduling API.",
    version=VERSION,
    lifespan=lifespan,
)

start_time = time.time()


def get_service(request: Request) -> LearningService:
    return request.app.state.service


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidEvidenceError)
async def invalid_evidence_handler(request: Request, exc: InvalidEvidenceError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(ArithmeticDegenerateError)
async def degenerate_handler(request: Request, exc: ArithmeticDegenerateError):
    logger.error(f"Degenerate confidence update: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


class ConceptCreate(BaseModel):
    name: str
    description: str | None = None


class FlashcardCreate(BaseModel):
    front: str
    back: str


class ReviewRequest(BaseModel):
    # Level name ("known_well") or value (0-4); validated by the service.
    level: str | int
    response_time_ms: int = 0


class QuizAnswer(BaseModel):
    question_id: str
    was_correct: bool
    response_time_ms: int = 0


class QuizRequest(BaseModel):
    answers: list[QuizAnswer] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


@app.post("/decks/{deck_id}/concepts", status_code=201)
async def create_concept(
    deck_id: str, body: ConceptCreate, service: LearningService = Depends(get_service)
):
    concept = await service.create_concept(deck_id, body.name, body.description)
    return as_dict(concept)


@app.get("/concepts/{concept_id}")
async def get_concept(concept_id: str, service: LearningService = Depends(get_service)):
    details = await service.get_concept_details(concept_id)
    return {
        **as_dict(details),
        "flashcard_count": details.flashcard_count,
        "mastered_flashcards": details.mastered_flashcards,
    }


@app.delete("/concepts/{concept_id}", status_code=204)
async def delete_concept(concept_id: str, service: LearningService = Depends(get_service)):
    await service.delete_concept(concept_id)


@app.post("/concepts/{concept_id}/flashcards", status_code=201)
async def add_flashcard(
    concept_id: str, body: FlashcardCreate, service: LearningService = Depends(get_service)
):
    card = await service.add_flashcard(concept_id, body.front, body.back)
    return as_dict(card)


@app.post("/flashcards/{flashcard_id}/review")
async def review_flashcard(
    flashcard_id: str, body: ReviewRequest, service: LearningService = Depends(get_service)
):
    outcome = await service.review_flashcard(flashcard_id, body.level, body.response_time_ms)
    return as_dict(outcome)


@app.post("/concepts/{concept_id}/quiz")
async def submit_quiz(
    concept_id: str, body: QuizRequest, service: LearningService = Depends(get_service)
):
    results = [
        QuizQuestionResult(a.question_id, a.was_correct, a.response_time_ms) for a in body.answers
    ]
    summary = await service.submit_quiz_batch(concept_id, results)
    return as_dict(summary)


@app.get("/flashcards/due")
async def due_flashcards(
    limit: int = 20, include_new: bool = True, service: LearningService = Depends(get_service)
):
    cards = await service.get_due_flashcards(limit=limit, include_new=include_new)
    return [as_dict(card) for card in cards]


@app.get("/decks/{deck_id}/weak")
async def weak_concepts(
    deck_id: str,
    limit: int | None = None,
    threshold: float | None = None,
    service: LearningService = Depends(get_service),
):
    """Omitted limit or threshold falls back to the configured weak_limit / weak_threshold."""
    ranked = await service.get_weak_concepts(deck_id, limit=limit, threshold=threshold)
    return [as_dict(item) for item in ranked]


@app.get("/decks/{deck_id}/dashboard")
async def dashboard(deck_id: str, service: LearningService = Depends(get_service)):
    return as_dict(await service.get_dashboard_overview(deck_id))
