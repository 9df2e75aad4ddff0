import pytest

from mastery.application.dashboard import (
    MasteryDistribution,
    average_confidence,
    mastery_bucket,
    mastery_distribution,
    summarize,
)
from mastery.domain.models import Concept


def concepts(*confidences):
    return [
        Concept(id=f"k{i}", deck_id="d", name=f"k{i}", confidence=c)
        for i, c in enumerate(confidences)
    ]


def test_three_concepts_summary():
    summary = summarize(concepts(0.1, 0.5, 0.9))

    assert summary.total_concepts == 3
    assert summary.average_confidence == pytest.approx(0.5)
    assert summary.distribution == MasteryDistribution(
        beginner=1, learning=1, proficient=0, mastered=1
    )


def test_empty_set_has_no_average():
    assert average_confidence([]) is None
    summary = summarize([])
    assert summary.average_confidence is None
    assert summary.total_concepts == 0
    assert summary.distribution.total == 0


@pytest.mark.parametrize(
    "confidence,bucket",
    [
        (0.0, "beginner"),
        (0.2999, "beginner"),
        (0.3, "learning"),
        (0.5999, "learning"),
        (0.6, "proficient"),
        (0.7999, "proficient"),
        (0.8, "mastered"),
        (1.0, "mastered"),
    ],
)
def test_boundaries_are_half_open(confidence, bucket):
    assert mastery_bucket(confidence) == bucket


def test_boundary_values_counted_once():
    dist = mastery_distribution(concepts(0.3, 0.6, 0.8))
    assert dist.as_dict() == {"beginner": 0, "learning": 1, "proficient": 1, "mastered": 1}
    assert dist.total == 3
