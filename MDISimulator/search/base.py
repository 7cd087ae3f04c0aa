# MDISimulator Search Base
# Plumbing shared by the search strategies: cached evaluation of candidate
# dosage vectors, bound handling, worker counts and improvement callbacks.

import logging
import os
from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np

from ..core.data_types import (
    DosageVector, DosingSchedule, ImprovementCallback, ImprovementEvent, SearchResult
)
from .cache import EvaluationCache
from .objective import ObjectiveFunction


class BaseSearchStrategy(ABC):
    """Abstract base class for dosage search strategies.

    Every candidate is a `DosageVector` applied to the timings and meals of
    the schedule being tuned. Candidates are scored through the shared
    `EvaluationCache`, so revisiting amounts never re-runs a simulation.
    Evaluation errors are never replaced by a default score: they abort the
    search.

    Attributes:
        objective (ObjectiveFunction): Scores schedules, lower is better.
        cache (EvaluationCache): Memo of scores by dosage vector.
        min_amount (float): Lower bound of every tunable amount.
        max_amount (float): Upper bound of every tunable amount.
        min_workers (int): Lower bound on the worker pool size.
        max_workers (Optional[int]): Upper bound on the worker pool size;
            None means the CPU count.
    """
    def __init__(self, objective: ObjectiveFunction, cache: Optional[EvaluationCache] = None,
                 min_amount: float = 0.0, max_amount: float = 40.0,
                 min_workers: int = 1, max_workers: Optional[int] = None):
        if min_amount > max_amount:
            raise ValueError(f"Invalid amount bounds [{min_amount}, {max_amount}]")
        if min_workers < 1:
            raise ValueError("At least one worker is required")
        self.objective = objective
        self.cache = cache if cache is not None else EvaluationCache()
        self.min_amount = float(min_amount)
        self.max_amount = float(max_amount)
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.logger = logging.getLogger(type(self).__module__)

    @abstractmethod
    def search(self, schedule: DosingSchedule, *args, on_improved: Optional[ImprovementCallback] = None,
               **kwargs) -> SearchResult:
        """Searches for dosage amounts improving on `schedule`.

        Args:
            schedule (DosingSchedule): Starting schedule; its timings and
                carbohydrate events are kept fixed.
            on_improved (Optional[ImprovementCallback]): Called with an
                `ImprovementEvent` whenever the best score improves.

        Returns:
            SearchResult: The best schedule found and its score.
        """
        pass

    def find_better_schedule(self, schedule: DosingSchedule, *args, **kwargs) -> DosingSchedule:
        """Runs `search` and returns only the best schedule."""
        return self.search(schedule, *args, **kwargs).schedule

    def evaluate(self, schedule: DosingSchedule, vector: DosageVector) -> float:
        """Scores `schedule` with its amounts replaced by `vector`, through the cache."""
        return self.cache.get_or_compute(
            vector, lambda: self.objective.score(schedule.with_dosage(vector))
        )

    def clip(self, amounts: Sequence[float]) -> np.ndarray:
        return np.clip(np.asarray(amounts, dtype=float), self.min_amount, self.max_amount)

    def worker_count(self, n_tasks: int) -> int:
        """Pool size for `n_tasks` independent evaluations."""
        upper = self.max_workers if self.max_workers is not None else (os.cpu_count() or 1)
        return max(self.min_workers, min(upper, max(n_tasks, 1)))

    def _notify(self, on_improved: Optional[ImprovementCallback], iteration: int,
                score: float, schedule: DosingSchedule) -> None:
        self.logger.info(
            "Improved at iteration %d: score %.6f with amounts %s",
            iteration, score, schedule.dosage_vector().amounts,
        )
        if on_improved is not None:
            on_improved(ImprovementEvent(iteration=iteration, score=score, schedule=schedule))

    def _cache_counters(self):
        stats = self.cache.stats()
        return stats["misses"], stats["hits"]

    def _result(self, schedule: DosingSchedule, score: float, counters_before, iterations: int,
                history=None) -> SearchResult:
        misses_before, hits_before = counters_before
        misses, hits = self._cache_counters()
        result = SearchResult(
            schedule=schedule,
            score=score,
            evaluations=misses - misses_before,
            cache_hits=hits - hits_before,
            iterations=iterations,
            history=list(history or []),
        )
        self.logger.info(
            "%s finished: score %.6f, %d evaluations, %d cache hits, amounts %s",
            type(self).__name__, score, result.evaluations, result.cache_hits,
            schedule.dosage_vector().amounts,
        )
        return result
