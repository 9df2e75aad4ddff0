"""Tests for the dampened Bayesian strategy: inertia, delta cap, bounds, slow decay."""

import pytest

from mastery.application.engine import DampenedBayesianStrategy
from mastery.domain.constants import MS_PER_DAY
from mastery.domain.evidence import FlashcardEvidence, QuizEvidence
from mastery.domain.models import Concept, ConfidenceLevel

T0 = 1_704_067_200_000
EPS = 1e-12


def make_concept(confidence=0.3, last_reviewed_at=None):
    return Concept(
        id="k1",
        deck_id="bio",
        name="Mitochondria",
        confidence=confidence,
        last_reviewed_at=last_reviewed_at,
    )


@pytest.fixture
def strategy():
    return DampenedBayesianStrategy()


class TestFlashcardUpdate:
    def test_large_jump_is_capped(self, strategy):
        # posterior 0.890625, blended 0.418125, delta capped at +0.08
        updated = strategy.update_from_flashcard(
            make_concept(0.3), FlashcardEvidence(ConfidenceLevel.MASTERED), T0
        )
        assert updated.confidence == pytest.approx(0.38)
        assert updated.last_reviewed_at == T0

    def test_small_move_is_blended_not_capped(self, strategy):
        # posterior 0.18 / 0.46, blended with inertia 0.8
        updated = strategy.update_from_flashcard(
            make_concept(0.3), FlashcardEvidence(ConfidenceLevel.KNOWN_FAIRLY), T0
        )
        posterior = 0.18 / 0.46
        assert updated.confidence == pytest.approx(0.3 * 0.8 + posterior * 0.2)

    def test_lower_bound(self, strategy):
        updated = strategy.update_from_flashcard(
            make_concept(0.05), FlashcardEvidence(ConfidenceLevel.UNKNOWN), T0
        )
        assert updated.confidence == 0.05

    def test_upper_bound(self, strategy):
        updated = strategy.update_from_flashcard(
            make_concept(0.995), FlashcardEvidence(ConfidenceLevel.MASTERED), T0
        )
        assert updated.confidence == 0.995

    def test_unknown_uses_softer_likelihood_than_baseline(self, strategy):
        assert strategy.flashcard_likelihoods[ConfidenceLevel.UNKNOWN] == 0.15
        assert strategy.flashcard_likelihoods[ConfidenceLevel.KNOWN_LITTLE] == 0.35


class TestQuizUpdate:
    def test_miss_after_mastery_is_tolerated(self, strategy):
        # likelihood 0.45 because the prior is above 0.75
        updated = strategy.update_from_quiz(make_concept(0.9), QuizEvidence(False), T0)
        posterior = 0.405 / 0.46
        assert updated.confidence == pytest.approx(0.9 * 0.8 + posterior * 0.2)

    def test_miss_below_tolerance(self, strategy):
        updated = strategy.update_from_quiz(make_concept(0.5), QuizEvidence(False), T0)
        assert updated.confidence == pytest.approx(0.46)

    def test_tolerance_uses_decayed_prior(self, strategy):
        # 0.78 decays to 0.741 after one day, below the 0.75 tolerance line.
        concept = make_concept(0.78, last_reviewed_at=T0 - MS_PER_DAY)
        updated = strategy.update_from_quiz(concept, QuizEvidence(False), T0)
        assert updated.confidence == pytest.approx(0.70296, abs=1e-4)

    def test_correct_is_capped(self, strategy):
        updated = strategy.update_from_quiz(make_concept(0.3), QuizEvidence(True), T0)
        assert updated.confidence == pytest.approx(0.38)


class TestDecay:
    def test_regular_decay(self, strategy):
        concept = make_concept(0.5, last_reviewed_at=T0)
        assert strategy.apply_decay(concept, T0 + 2 * MS_PER_DAY).confidence == pytest.approx(
            0.45125
        )

    def test_mastered_concepts_decay_slower(self, strategy):
        concept = make_concept(0.9, last_reviewed_at=T0)
        decayed = strategy.apply_decay(concept, T0 + 2 * MS_PER_DAY)
        assert decayed.confidence == pytest.approx(0.9 * 0.95)

    def test_noop_without_review_or_elapsed_time(self, strategy):
        fresh = make_concept(0.6)
        assert strategy.apply_decay(fresh, T0) is fresh
        reviewed = make_concept(0.6, last_reviewed_at=T0)
        assert strategy.apply_decay(reviewed, T0 - 1) is reviewed

    def test_decay_never_drops_below_floor(self, strategy):
        concept = make_concept(0.06, last_reviewed_at=T0)
        assert strategy.apply_decay(concept, T0 + 365 * MS_PER_DAY).confidence == 0.05


class TestProperties:
    PRIORS = [0.05, 0.1, 0.3, 0.5, 0.76, 0.81, 0.95, 0.995]
    ELAPSED_DAYS = [0, 0.5, 3, 40]

    @pytest.mark.parametrize("prior", PRIORS)
    @pytest.mark.parametrize("days", ELAPSED_DAYS)
    @pytest.mark.parametrize("level", list(ConfidenceLevel))
    def test_flashcard_bounded_and_capped(self, strategy, prior, days, level):
        concept = make_concept(prior, last_reviewed_at=T0)
        now = T0 + int(days * MS_PER_DAY)
        decayed = strategy.apply_decay(concept, now)

        updated = strategy.update_from_flashcard(concept, FlashcardEvidence(level), now)

        assert 0.05 <= updated.confidence <= 0.995
        assert abs(updated.confidence - decayed.confidence) <= strategy.max_daily_delta + EPS

    @pytest.mark.parametrize("prior", PRIORS)
    @pytest.mark.parametrize("days", ELAPSED_DAYS)
    @pytest.mark.parametrize("correct", [True, False])
    def test_quiz_bounded_and_capped(self, strategy, prior, days, correct):
        concept = make_concept(prior, last_reviewed_at=T0)
        now = T0 + int(days * MS_PER_DAY)
        decayed = strategy.apply_decay(concept, now)

        updated = strategy.update_from_quiz(concept, QuizEvidence(correct), now)

        assert 0.05 <= updated.confidence <= 0.995
        assert abs(updated.confidence - decayed.confidence) <= strategy.max_daily_delta + EPS

    def test_custom_cap(self):
        strategy = DampenedBayesianStrategy(max_daily_delta=0.02, inertia=0.0)
        updated = strategy.update_from_quiz(make_concept(0.5), QuizEvidence(True), T0)
        assert updated.confidence == pytest.approx(0.52)


class TestConstruction:
    @pytest.mark.parametrize("inertia", [-0.1, 1.0, 2.0])
    def test_rejects_bad_inertia(self, inertia):
        with pytest.raises(ValueError):
            DampenedBayesianStrategy(inertia=inertia)

    @pytest.mark.parametrize("delta", [0.0, -0.1])
    def test_rejects_bad_delta(self, delta):
        with pytest.raises(ValueError):
            DampenedBayesianStrategy(max_daily_delta=delta)

    def test_bounds_exposed(self, strategy):
        assert strategy.min_confidence == 0.05
        assert strategy.max_confidence == 0.995
