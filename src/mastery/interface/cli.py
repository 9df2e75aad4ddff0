"""mastery CLI: concept, card and review commands plus progress reports."""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any, TypeVar

import typer

from mastery.application.config import AppConfig, resolve_config
from mastery.application.factory import build_service, get_store
from mastery.application.service import LearningService, QuizQuestionResult, as_dict
from mastery.domain.errors import MasteryError
from mastery.domain.models import ConfidenceLevel

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="mastery: track concept confidence and schedule flashcard reviews.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Subgroups
# ---------------------------------------------------------------------------

concept_app = typer.Typer(help="Create, inspect and delete concepts.", no_args_is_help=True)
app.add_typer(concept_app, name="concept")

card_app = typer.Typer(help="Manage flashcards.", no_args_is_help=True)
app.add_typer(card_app, name="card")

config_app = typer.Typer(help="Manage mastery configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    db: Annotated[
        str | None, typer.Option("--db", help="SQLite database path, or ':memory:'.")
    ] = None,
    strategy: Annotated[
        str | None, typer.Option(help="Confidence strategy: bayesian or dampened.")
    ] = None,
):
    """Global settings for mastery."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = {"db_path": db, "strategy": strategy}

    if verbose >= 2:
        logging.getLogger("mastery").setLevel(logging.DEBUG)
    elif verbose == 1:
        logging.getLogger("mastery").setLevel(logging.INFO)


def _config(ctx: typer.Context) -> AppConfig:
    overrides = (ctx.obj or {}).get("overrides", {})
    return resolve_config(overrides)


def _run(ctx: typer.Context, action: Callable[[LearningService], Awaitable[T]]) -> T:
    """Open the store, run one use case and translate domain errors into exit codes."""
    config = _config(ctx)
    logger.debug(f"strategy={config.strategy} db_path={config.db_path}")
    store = get_store(config)
    try:
        service = build_service(config, store=store)
        return asyncio.run(action(service))
    except MasteryError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e
    finally:
        store.close()


def _dump(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


def _pct(value: float | None) -> str:
    return "no data" if value is None else f"{value * 100:.1f}%"


# ---------------------------------------------------------------------------
# Concept subgroup
# ---------------------------------------------------------------------------


@concept_app.command("add")
def concept_add(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck the concept belongs to.")],
    name: Annotated[str, typer.Argument(help="Concept name.")],
    description: Annotated[str | None, typer.Option(help="Optional description.")] = None,
):
    """Create a concept with the default prior confidence."""
    concept = _run(ctx, lambda s: s.create_concept(deck, name, description))
    typer.echo(concept.id)


@concept_app.command("list")
def concept_list(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck to list.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List a deck's concepts with their decayed confidence."""
    rows = _run(ctx, lambda s: s.list_concepts(deck))

    if json_output:
        _dump([{**as_dict(c), "current_confidence": current} for c, current in rows])
        return

    if not rows:
        typer.secho("No concepts found.", fg="yellow")
        return
    for concept, current in rows:
        typer.echo(f"{concept.id}  {_pct(current):>7}  {concept.name}")


@concept_app.command("show")
def concept_show(
    ctx: typer.Context,
    concept_id: Annotated[str, typer.Argument(help="Concept ID.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show a concept with its flashcards."""
    details = _run(ctx, lambda s: s.get_concept_details(concept_id))

    if json_output:
        _dump(
            {
                **as_dict(details),
                "flashcard_count": details.flashcard_count,
                "mastered_flashcards": details.mastered_flashcards,
            }
        )
        return

    concept = details.concept
    typer.echo(f"{concept.name}  ({concept.id})")
    if concept.description:
        typer.echo(f"  {concept.description}")
    typer.echo(
        f"Confidence: {_pct(details.current_confidence)} (stored {_pct(concept.confidence)})"
    )
    typer.echo(
        f"Flashcards: {details.flashcard_count}  Mastered: {details.mastered_flashcards}  "
        f"Due: {details.due_flashcards}"
    )
    for card in details.flashcards:
        typer.echo(f"  [box {card.box}] {card.id}  {card.front}")


@concept_app.command("delete")
def concept_delete(
    ctx: typer.Context,
    concept_id: Annotated[str, typer.Argument(help="Concept ID.")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation.")] = False,
):
    """Delete a concept with its flashcards and review history."""
    if not force:
        typer.confirm(f"Delete {concept_id} and all of its flashcards?", abort=True)
    _run(ctx, lambda s: s.delete_concept(concept_id))
    typer.secho(f"Deleted {concept_id}.", fg="green")


# ---------------------------------------------------------------------------
# Card subgroup
# ---------------------------------------------------------------------------


@card_app.command("add")
def card_add(
    ctx: typer.Context,
    concept_id: Annotated[str, typer.Argument(help="Concept the card tests.")],
    front: Annotated[str, typer.Argument(help="Question side.")],
    back: Annotated[str, typer.Argument(help="Answer side.")],
):
    """Add a flashcard in box 1."""
    card = _run(ctx, lambda s: s.add_flashcard(concept_id, front, back))
    typer.echo(card.id)


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------

LEVEL_HELP = ", ".join(level.name.lower() for level in ConfidenceLevel)


@app.command()
def review(
    ctx: typer.Context,
    flashcard_id: Annotated[str, typer.Argument(help="Flashcard ID.")],
    level: Annotated[str, typer.Argument(help=f"Recall rating: {LEVEL_HELP} (or 0-4).")],
    response_time_ms: Annotated[int, typer.Option("--time", help="Response time in ms.")] = 0,
):
    """[bold green]Grade[/bold green] a flashcard and reschedule it."""
    outcome = _run(ctx, lambda s: s.review_flashcard(flashcard_id, level, response_time_ms))

    typer.echo(
        f"Confidence: {_pct(outcome.previous_confidence)} -> {_pct(outcome.concept.confidence)}"
    )
    typer.echo(f"Box: {outcome.previous_box} -> {outcome.flashcard.box}")


@app.command()
def quiz(
    ctx: typer.Context,
    concept_id: Annotated[str, typer.Argument(help="Concept ID.")],
    answers: Annotated[
        list[str],
        typer.Argument(help="One or more answers as QUESTION_ID=correct|wrong."),
    ],
):
    """Submit quiz answers for a concept."""
    results = []
    for answer in answers:
        question_id, _, verdict = answer.partition("=")
        if verdict not in ("correct", "wrong"):
            typer.secho(f"Bad answer {answer!r}; use QUESTION_ID=correct|wrong.", fg="red")
            raise typer.Exit(2)
        results.append(QuizQuestionResult(question_id, verdict == "correct"))

    summary = _run(ctx, lambda s: s.submit_quiz_batch(concept_id, results))
    typer.echo(
        f"Score: {summary.correct_answers}/{summary.total_questions} "
        f"({summary.score_percentage:.0f}%)"
    )
    typer.echo(f"Confidence: {_pct(summary.concept.confidence)}")


@app.command()
def due(
    ctx: typer.Context,
    limit: Annotated[int, typer.Option(help="Maximum cards to list.")] = 20,
    include_new: Annotated[
        bool, typer.Option("--include-new/--no-include-new", help="Include box 5 cards.")
    ] = True,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List flashcards due for review, weakest box first."""
    cards = _run(ctx, lambda s: s.get_due_flashcards(limit=limit, include_new=include_new))

    if json_output:
        _dump([as_dict(card) for card in cards])
        return
    if not cards:
        typer.secho("Nothing due.", fg="green")
        return
    for card in cards:
        typer.echo(f"[box {card.box}] {card.id}  {card.front}")


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


@app.command()
def weak(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck to analyse.")],
    limit: Annotated[int | None, typer.Option(help="Maximum concepts.")] = None,
    threshold: Annotated[float | None, typer.Option(help="Confidence threshold.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Rank the concepts that most need attention."""
    # None falls back to weak_limit / weak_threshold from the config.
    ranked = _run(ctx, lambda s: s.get_weak_concepts(deck, limit=limit, threshold=threshold))

    if json_output:
        _dump([as_dict(item) for item in ranked])
        return
    if not ranked:
        typer.secho("No weak concepts.", fg="green")
        return
    for item in ranked:
        typer.echo(
            f"{item.priority:.3f}  {_pct(item.concept.confidence):>7}  "
            f"{item.concept.name} - {item.recommendation}"
        )


@app.command()
def dashboard(
    ctx: typer.Context,
    deck: Annotated[str, typer.Argument(help="Deck to summarize.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Summarize a deck: average confidence, mastery buckets, activity."""
    overview = _run(ctx, lambda s: s.get_dashboard_overview(deck))

    if json_output:
        _dump(as_dict(overview))
        return

    typer.echo(f"Deck: {overview.deck_id}")
    typer.echo(f"Concepts: {overview.total_concepts}")
    typer.echo(f"Average confidence: {_pct(overview.average_confidence)}")
    dist = overview.distribution
    typer.echo(
        f"Beginner: {dist.beginner}  Learning: {dist.learning}  "
        f"Proficient: {dist.proficient}  Mastered: {dist.mastered}"
    )
    typer.echo(f"Due flashcards: {overview.due_flashcards}")
    typer.echo(f"Reviews (7 days): {overview.recent_reviews}")
    if overview.weakest_concepts:
        typer.echo("Weakest:")
        for concept in overview.weakest_concepts:
            typer.echo(f"  {_pct(concept.confidence):>7}  {concept.name}")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command()
def server(
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 8777,
    reload: Annotated[bool, typer.Option(help="Auto-reload on code changes.")] = False,
):
    """Run the HTTP API server."""
    import uvicorn

    uvicorn.run("mastery.server:app", host=host, port=port, reload=reload)
