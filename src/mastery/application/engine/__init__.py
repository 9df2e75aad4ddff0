# Learning Engine Package
from .bayesian import BayesianStrategy
from .dampened import DampenedBayesianStrategy
from .learning_engine import LearningEngine
from .strategy import ConfidenceUpdateStrategy, bayesian_update

__all__ = [
    "ConfidenceUpdateStrategy",
    "BayesianStrategy",
    "DampenedBayesianStrategy",
    "LearningEngine",
    "bayesian_update",
]
