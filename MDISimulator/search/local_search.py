# MDISimulator Stochastic Local Search
# Greedy random walk over dosage amounts: perturb, score, keep if better.

from typing import Optional

import numpy as np

from ..core.data_types import DosageVector, DosingSchedule, ImprovementCallback, SearchResult
from .base import BaseSearchStrategy


class StochasticLocalSearch(BaseSearchStrategy):
    """Markov-chain style local search with greedy acceptance.

    Each step perturbs every amount by a random integer in
    `[-max_delta, max_delta]`, clips the result to the bounds and accepts it
    only if it scores strictly better than the current state. Worse moves
    are never accepted, so the walk can settle in a local minimum.

    Runs single-threaded: every proposal depends on the last accepted state.
    """
    def __init__(self, *args, max_delta: int = 2, seed: Optional[int] = None, **kwargs):
        super().__init__(*args, **kwargs)
        if max_delta < 1:
            raise ValueError("max_delta must be at least 1")
        self.max_delta = int(max_delta)
        self.seed = seed

    def search(self, schedule: DosingSchedule, steps: int = 200,
               on_improved: Optional[ImprovementCallback] = None) -> SearchResult:
        """Runs `steps` proposals starting from `schedule`.

        Args:
            schedule (DosingSchedule): Starting schedule.
            steps (int): Number of proposals to evaluate.
            on_improved (Optional[ImprovementCallback]): Called after every
                accepted proposal.

        Returns:
            SearchResult: Final state; `history` holds the current score
                after every step and never increases.
        """
        if steps < 0:
            raise ValueError("Step budget must be non-negative")
        rng = np.random.default_rng(self.seed)
        counters = self._cache_counters()

        current_vector = schedule.dosage_vector()
        current_score = self.evaluate(schedule, current_vector)
        history = []
        self.logger.info("Local search for %d steps from score %.6f", steps, current_score)

        for step in range(steps):
            deltas = rng.integers(-self.max_delta, self.max_delta, size=len(current_vector), endpoint=True)
            proposal = DosageVector.from_amounts(self.clip(current_vector.to_array() + deltas))
            score = self.evaluate(schedule, proposal)

            if score < current_score:
                current_vector, current_score = proposal, score
                self._notify(on_improved, step, current_score, schedule.with_dosage(current_vector))
            history.append(current_score)

        return self._result(schedule.with_dosage(current_vector), current_score, counters,
                            iterations=steps, history=history)
