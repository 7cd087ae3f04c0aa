"""Dosage search for the MDISimulator library.

All strategies share an `ObjectiveFunction` (lower is better) and an
`EvaluationCache` keyed by dosage amounts.

Key Contents:
    - `ObjectiveFunction`: Scores a schedule from its simulated trace.
    - `EvaluationCache`: Thread-safe score memo.
    - `GridSearch`: Exhaustive, parallel search over integer amounts.
    - `StochasticLocalSearch`: Greedy random walk, single-threaded.
    - `EvolutionarySearch`: Genetic algorithm with per-generation parallel
      scoring and stagnation termination.
"""

from .base import BaseSearchStrategy
from .cache import EvaluationCache
from .evolutionary_search import EvolutionarySearch
from .grid_search import GridSearch
from .local_search import StochasticLocalSearch
from .objective import ObjectiveBreakdown, ObjectiveFunction

__all__ = [
    "BaseSearchStrategy",
    "EvaluationCache",
    "EvolutionarySearch",
    "GridSearch",
    "StochasticLocalSearch",
    "ObjectiveBreakdown",
    "ObjectiveFunction",
]
