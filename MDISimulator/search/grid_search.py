# MDISimulator Grid Search
# Exhaustive search over every integer combination of dosage amounts.

import itertools
import math
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterator, List, Optional, Sequence, Tuple

from ..core.data_types import DosageVector, DosingSchedule, ImprovementCallback, SearchResult
from .base import BaseSearchStrategy


class _BestCandidate:
    """Best (score, vector) seen so far, updated atomically by concurrent workers.

    Candidates are ranked by score, then by enumeration order, so the winner
    does not depend on which worker finishes first.
    """
    def __init__(self, score: float, vector: DosageVector, order: int):
        self._lock = threading.Lock()
        self.score = score
        self.vector = vector
        self.order = order

    def offer(self, score: float, vector: DosageVector, order: int, on_improved=None) -> bool:
        with self._lock:
            if (score, order) >= (self.score, self.order):
                return False
            improved = score < self.score
            self.score, self.vector, self.order = score, vector, order
            if improved and on_improved is not None:
                on_improved(score, vector, order)
            return True


class GridSearch(BaseSearchStrategy):
    """Scores every integer dosage vector within the amount bounds.

    Cost grows as `(max - min + 1) ** k` for `k` tunable amounts (basal plus
    each bolus), so this is meant for a handful of dimensions. The result is
    the optimum over the grid, or the starting schedule if nothing on the
    grid beats it. Ties go to the vector enumerated first.

    Candidates are evaluated in chunks on a thread pool; each worker offers
    its results to a shared, lock-protected best candidate.
    """
    def __init__(self, *args, chunk_size: int = 256, **kwargs):
        super().__init__(*args, **kwargs)
        if chunk_size < 1:
            raise ValueError("Chunk size must be positive")
        self.chunk_size = chunk_size

    @staticmethod
    def _integer_range(amount_bounds: Tuple[float, float]) -> range:
        low, high = amount_bounds
        low, high = math.ceil(low), math.floor(high)
        if low > high:
            raise ValueError(f"No integer amounts within bounds {amount_bounds}")
        return range(low, high + 1)

    def _chunks(self, values: range, dimensions: int) -> Iterator[Tuple[int, List[Tuple[int, ...]]]]:
        candidates = itertools.product(values, repeat=dimensions)
        start = 0
        while True:
            chunk = list(itertools.islice(candidates, self.chunk_size))
            if not chunk:
                return
            yield start, chunk
            start += len(chunk)

    def search(self, schedule: DosingSchedule, amount_bounds: Optional[Sequence[float]] = None,
               on_improved: Optional[ImprovementCallback] = None) -> SearchResult:
        """Enumerates the integer grid and returns the best schedule.

        Args:
            schedule (DosingSchedule): Starting schedule.
            amount_bounds (Optional[Sequence[float]]): Inclusive `[min, max]`
                for every amount; defaults to the strategy's bounds.
            on_improved (Optional[ImprovementCallback]): Improvement
                callback; called while holding the best-candidate lock.

        Returns:
            SearchResult: Best schedule and score; `iterations` is the
                number of grid points.
        """
        bounds = tuple(amount_bounds) if amount_bounds is not None else (self.min_amount, self.max_amount)
        values = self._integer_range(bounds)
        dimensions = len(schedule.dosage_vector())
        total = len(values) ** dimensions
        n_chunks = math.ceil(total / self.chunk_size)
        workers = self.worker_count(n_chunks)
        counters = self._cache_counters()

        self.logger.info(
            "Grid search over %d candidates (%d amounts in [%d, %d]) with %d workers",
            total, dimensions, values.start, values.stop - 1, workers,
        )

        initial = schedule.dosage_vector()
        best = _BestCandidate(self.evaluate(schedule, initial), initial, order=-1)

        def report(score: float, vector: DosageVector, order: int) -> None:
            self._notify(on_improved, order, score, schedule.with_dosage(vector))

        def run_chunk(start: int, candidates: List[Tuple[int, ...]]) -> None:
            for offset, amounts in enumerate(candidates):
                vector = DosageVector.from_amounts(amounts)
                score = self.evaluate(schedule, vector)
                best.offer(score, vector, start + offset, report)

        chunks = self._chunks(values, dimensions)
        batch_size = max(1, workers * 2)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            while True:
                batch = list(itertools.islice(chunks, batch_size))
                if not batch:
                    break
                futures = [executor.submit(run_chunk, start, candidates) for start, candidates in batch]
                for future in as_completed(futures):
                    try:
                        future.result()
                    except Exception:
                        for pending in futures:
                            pending.cancel()
                        self.logger.error("Grid search aborted by a failed evaluation")
                        raise

        return self._result(schedule.with_dosage(best.vector), best.score, counters, iterations=total)
