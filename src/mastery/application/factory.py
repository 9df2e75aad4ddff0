"""
Engine and Store Factory
Centralizes the logic for turning an AppConfig into concrete collaborators.
"""

import logging

from mastery.application.config import AppConfig
from mastery.application.engine import (
    BayesianStrategy,
    ConfidenceUpdateStrategy,
    DampenedBayesianStrategy,
    LearningEngine,
)
from mastery.application.prioritizer import PriorityConfig, WeakConceptPrioritizer
from mastery.application.service import LearningService
from mastery.domain.ports import Clock
from mastery.infrastructure.adapters.memory_store import InMemoryStore
from mastery.infrastructure.adapters.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)


def build_strategy(config: AppConfig) -> ConfidenceUpdateStrategy:
    """
    Returns the confidence strategy selected by config.
    """
    if config.strategy == "bayesian":
        return BayesianStrategy(decay_rate=config.decay_rate)

    return DampenedBayesianStrategy(
        decay_rate=config.decay_rate,
        inertia=config.inertia,
        max_daily_delta=config.max_daily_delta,
    )


def build_engine(config: AppConfig, clock: Clock | None = None) -> LearningEngine:
    strategy = build_strategy(config)
    logger.debug(f"Learning engine using {strategy!r}")
    return LearningEngine(strategy, clock=clock)


def build_prioritizer(config: AppConfig) -> WeakConceptPrioritizer:
    return WeakConceptPrioritizer(
        PriorityConfig(
            confidence_weight=config.confidence_weight,
            time_weight=config.time_weight,
            never_reviewed=config.never_reviewed_priority,
            steps=tuple(config.time_priority_steps),
            recent=config.recent_priority,
        )
    )


def get_store(config: AppConfig) -> InMemoryStore | SqliteStore:
    """
    Returns a store bundle exposing concept, flashcard and review-event adapters.

    A db_path selects SQLite; ":memory:" (db_path=None) keeps data in memory.
    """
    if config.db_path is not None:
        return SqliteStore(config.db_path)
    return InMemoryStore()


def build_service(
    config: AppConfig,
    store: InMemoryStore | SqliteStore | None = None,
    clock: Clock | None = None,
) -> LearningService:
    """Wire a LearningService with the configured engine, prioritizer and store."""
    store = store or get_store(config)
    return LearningService(
        store.concepts,
        store.flashcards,
        store.events,
        build_engine(config, clock=clock),
        prioritizer=build_prioritizer(config),
        clock=clock,
        weak_limit=config.weak_limit,
        weak_threshold=config.weak_threshold,
    )
