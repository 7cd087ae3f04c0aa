# MDISimulator Evaluation Cache
# Memoizes objective scores by dosage amounts, shared by concurrent workers.

import threading
from typing import Callable, Dict, Tuple

from ..core.data_types import DosageVector
from ..core.exceptions import CacheConsistencyError


class EvaluationCache:
    """Thread-safe memo of scores keyed by `DosageVector`.

    Lookups and inserts take a short lock; the computation itself runs
    outside it, so workers evaluating different vectors never wait on each
    other. Two workers racing on the same vector may both compute it; the
    first stored value wins and is returned to both.
    """
    def __init__(self):
        self._entries: Dict[DosageVector, Tuple[DosageVector, float]] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def _lookup(self, vector: DosageVector):
        entry = self._entries.get(vector)
        if entry is None:
            return None
        stored_key, value = entry
        if stored_key != vector:
            raise CacheConsistencyError(
                f"Cache entry for {vector.amounts} was stored under {stored_key.amounts}"
            )
        return value

    def get(self, vector: DosageVector):
        """Returns the stored score for `vector`, or None."""
        with self._lock:
            return self._lookup(vector)

    def get_or_compute(self, vector: DosageVector, compute: Callable[[], float]) -> float:
        """Returns the cached score of `vector`, computing and storing it if absent.

        Exceptions raised by `compute` propagate and nothing is stored.
        """
        with self._lock:
            value = self._lookup(vector)
            if value is not None:
                self.hits += 1
                return value

        value = float(compute())

        with self._lock:
            self.misses += 1
            _, stored_value = self._entries.setdefault(vector, (vector, value))
            return stored_value

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, vector: DosageVector) -> bool:
        with self._lock:
            return vector in self._entries
