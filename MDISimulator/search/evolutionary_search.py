# MDISimulator Evolutionary Search
# Population-based search over dosage amounts with elite selection, uniform
# crossover and bounded mutation.

from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Optional

import numpy as np

from ..core.data_types import DosageVector, DosingSchedule, ImprovementCallback, SearchResult
from .base import BaseSearchStrategy


class EvolutionarySearch(BaseSearchStrategy):
    """Genetic algorithm over real-valued genomes, one gene per tunable amount.

    Fitness is the negated objective score, so higher fitness is better.
    The first generation holds `min_population` individuals: the starting
    schedule plus uniformly random ones. Every following generation holds
    `max_population`: the elites carried over unchanged and children bred
    from the fitter half by uniform crossover and Gaussian mutation. Genes
    are clipped to the amount bounds and rounded to `decimals` places, which
    keeps the search on a grid the evaluation cache can reuse.

    The starting schedule is also scored exactly as given, before rounding
    and clipping, as a baseline. It is returned unchanged unless some
    generation beats it strictly.

    A generation is scored in parallel and fully, before selection starts.
    The run stops once the best fitness has not improved for
    `stagnation_generations` generations, or after `max_generations`.
    """
    def __init__(self, *args, min_population: int = 50, max_population: int = 100,
                 stagnation_generations: int = 100, max_generations: int = 1000,
                 elite_fraction: float = 0.2, mutation_rate: float = 0.1,
                 mutation_scale: float = 4.0, decimals: int = 0, seed: Optional[int] = None,
                 **kwargs):
        super().__init__(*args, **kwargs)
        if min_population < 2 or max_population < min_population:
            raise ValueError(
                f"Invalid population sizes: min={min_population}, max={max_population}"
            )
        if stagnation_generations < 1 or max_generations < 1:
            raise ValueError("Generation limits must be positive")
        self.min_population = min_population
        self.max_population = max_population
        self.stagnation_generations = stagnation_generations
        self.max_generations = max_generations
        self.elite_fraction = elite_fraction
        self.mutation_rate = mutation_rate
        self.mutation_scale = mutation_scale
        self.decimals = decimals
        self.seed = seed

    def _encode(self, genes: np.ndarray) -> np.ndarray:
        return self.clip(np.round(genes, self.decimals))

    def _initial_population(self, schedule: DosingSchedule, rng: np.random.Generator) -> np.ndarray:
        dimensions = len(schedule.dosage_vector())
        random_genes = rng.uniform(self.min_amount, self.max_amount,
                                   size=(self.min_population - 1, dimensions))
        seed_genes = schedule.dosage_vector().to_array()[np.newaxis, :]
        return self._encode(np.vstack([seed_genes, random_genes]))

    def _score_population(self, schedule: DosingSchedule, population: np.ndarray,
                          executor: Executor) -> np.ndarray:
        vectors = [DosageVector.from_amounts(genes) for genes in population]
        unique = list(dict.fromkeys(vectors))
        scores = dict(zip(unique, executor.map(lambda v: self.evaluate(schedule, v), unique)))
        return -np.array([scores[v] for v in vectors])

    def _next_generation(self, population: np.ndarray, fitness: np.ndarray,
                         rng: np.random.Generator) -> np.ndarray:
        ranking = np.argsort(-fitness, kind="stable")
        n_elite = max(1, int(round(self.elite_fraction * len(population))))
        elites = population[ranking[:n_elite]]
        parents = population[ranking[:max(2, len(population) // 2)]]

        n_children = max(self.max_population - n_elite, 1)
        dimensions = population.shape[1]
        first = parents[rng.integers(len(parents), size=n_children)]
        second = parents[rng.integers(len(parents), size=n_children)]
        children = np.where(rng.random((n_children, dimensions)) < 0.5, first, second)

        mutated = rng.random((n_children, dimensions)) < self.mutation_rate
        noise = rng.normal(0.0, self.mutation_scale, size=(n_children, dimensions))
        children = self._encode(children + mutated * noise)
        return np.vstack([elites, children])

    def search(self, schedule: DosingSchedule,
               on_improved: Optional[ImprovementCallback] = None) -> SearchResult:
        """Evolves dosage amounts for `schedule`.

        Args:
            schedule (DosingSchedule): Starting schedule; scored as given,
                and rounded into the first generation.
            on_improved (Optional[ImprovementCallback]): Called when a
                generation improves the best fitness; `iteration` is the
                generation index.

        Returns:
            SearchResult: Best individual seen across the run, or the
                starting schedule if nothing beat it; `history`
                holds the best score after each generation.
        """
        rng = np.random.default_rng(self.seed)
        counters = self._cache_counters()
        population = self._initial_population(schedule, rng)
        workers = self.worker_count(self.max_population)

        start_vector = schedule.dosage_vector()
        best_fitness = -self.evaluate(schedule, start_vector)
        best_genes = start_vector.to_array()
        stagnant = 0
        generation = 0
        history = []

        self.logger.info(
            "Evolutionary search: population %d-%d, stagnation window %d, %d workers",
            self.min_population, self.max_population, self.stagnation_generations, workers,
        )
        with ThreadPoolExecutor(max_workers=workers) as executor:
            while generation < self.max_generations:
                fitness = self._score_population(schedule, population, executor)
                leader = int(np.argmax(fitness))
                if fitness[leader] > best_fitness:
                    best_fitness = float(fitness[leader])
                    best_genes = population[leader].copy()
                    stagnant = 0
                    self._notify(on_improved, generation, -best_fitness,
                                 schedule.with_dosage(DosageVector.from_amounts(best_genes)))
                else:
                    stagnant += 1
                history.append(-best_fitness)
                self.logger.debug(
                    "Generation %d: best %.6f, mean %.6f, stagnant for %d",
                    generation, -best_fitness, float(-np.mean(fitness)), stagnant,
                )
                generation += 1
                if stagnant >= self.stagnation_generations:
                    break
                population = self._next_generation(population, fitness, rng)

        best_schedule = schedule.with_dosage(DosageVector.from_amounts(best_genes))
        return self._result(best_schedule, -best_fitness, counters,
                            iterations=generation, history=history)
