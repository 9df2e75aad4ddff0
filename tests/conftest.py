import pytest

from mastery.application.engine import BayesianStrategy, LearningEngine
from mastery.application.service import LearningService
from mastery.domain.constants import MS_PER_DAY
from mastery.domain.ports import FixedClock
from mastery.infrastructure.adapters.memory_store import InMemoryStore

# A fixed "now": 2024-01-01T00:00:00Z in epoch ms.
T0 = 1_704_067_200_000
DAY = MS_PER_DAY


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def service(store, clock):
    """LearningService on the baseline strategy, so expected values are easy to derive."""
    engine = LearningEngine(BayesianStrategy(), clock=clock)
    return LearningService(store.concepts, store.flashcards, store.events, engine, clock=clock)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and the default database
    monkeypatch.setenv("HOME", str(home))
    for var in ("MASTERY_STRATEGY", "MASTERY_DB_PATH", "MASTERY_DECAY_RATE"):
        monkeypatch.delenv(var, raising=False)
    return home
