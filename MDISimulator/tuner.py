# MDISimulator Dosage Tuner
# Wires settings, the glucose model, the simulation engine, the objective
# function and the search strategies together.

import logging
from typing import Optional

from .core.base_classes import ModelFactory
from .core.data_types import DosingSchedule, ImprovementCallback, OutputTrace, SearchResult
from .core.simulation_engine import SimulationEngine
from .models import create_model_factory
from .search.cache import EvaluationCache
from .search.evolutionary_search import EvolutionarySearch
from .search.grid_search import GridSearch
from .search.local_search import StochasticLocalSearch
from .search.objective import ObjectiveBreakdown, ObjectiveFunction
from .utils.config import TunerSettings


class DosageTuner:
    """Entry point for simulating and tuning a dosing schedule.

    Every search call gets its own evaluation cache. Cached scores are keyed
    by dosage amounts only, so they are valid only while the timings and
    meals of the schedule stay fixed, i.e. within one search run. The cache
    is not persisted.

    Example:
        >>> from MDISimulator import DosageTuner, EXAMPLE_SCHEDULE
        >>> tuner = DosageTuner()
        >>> result = tuner.local_search(EXAMPLE_SCHEDULE, steps=50)
        >>> result.schedule.dosage_vector().amounts

    Attributes:
        settings (TunerSettings): Effective settings.
        engine (SimulationEngine): Simulation driver.
        objective (ObjectiveFunction): Scoring function.
    """
    def __init__(self, settings: Optional[TunerSettings] = None,
                 model_factory: Optional[ModelFactory] = None):
        """Initializes the tuner.

        Args:
            settings (Optional[TunerSettings]): Settings; defaults apply
                when None.
            model_factory (Optional[ModelFactory]): Overrides the model
                selected by `settings.simulation.model`.
        """
        self.settings = settings or TunerSettings()
        self.logger = logging.getLogger(__name__)

        sim = self.settings.simulation
        factory = model_factory if model_factory is not None else create_model_factory(sim)
        self.engine = SimulationEngine(factory, log_dir=sim.log_dir)
        self.objective = ObjectiveFunction(
            self.engine,
            self.settings.objective,
            max_amount=self.settings.dosage.max_amount,
            days=sim.days,
        )

    @classmethod
    def from_config_file(cls, config_path: Optional[str] = None, **kwargs) -> "DosageTuner":
        return cls(TunerSettings.from_file(config_path), **kwargs)

    def _common(self):
        return dict(
            objective=self.objective,
            cache=EvaluationCache(),
            min_amount=self.settings.dosage.min_amount,
            max_amount=self.settings.dosage.max_amount,
            min_workers=self.settings.parallelism.min_workers,
            max_workers=self.settings.parallelism.max_workers,
        )

    def simulate(self, schedule: DosingSchedule, days: Optional[int] = None) -> OutputTrace:
        return self.engine.simulate(schedule, self.settings.simulation.days if days is None else days)

    def score(self, schedule: DosingSchedule, days: Optional[int] = None) -> float:
        return self.objective.score(schedule, days)

    def breakdown(self, schedule: DosingSchedule, days: Optional[int] = None) -> ObjectiveBreakdown:
        return self.objective.breakdown(schedule, days)

    def grid_search(self, schedule: DosingSchedule, amount_bounds=None,
                    on_improved: Optional[ImprovementCallback] = None) -> SearchResult:
        grid = self.settings.grid
        if amount_bounds is None:
            amount_bounds = (
                self.settings.dosage.min_amount if grid.min_amount is None else grid.min_amount,
                self.settings.dosage.max_amount if grid.max_amount is None else grid.max_amount,
            )
        strategy = GridSearch(chunk_size=grid.chunk_size, **self._common())
        return strategy.search(schedule, amount_bounds, on_improved=on_improved)

    def local_search(self, schedule: DosingSchedule, steps: Optional[int] = None,
                     on_improved: Optional[ImprovementCallback] = None) -> SearchResult:
        local = self.settings.local
        strategy = StochasticLocalSearch(max_delta=local.max_delta, seed=local.seed, **self._common())
        return strategy.search(schedule, local.steps if steps is None else steps, on_improved=on_improved)

    def evolutionary_search(self, schedule: DosingSchedule,
                            on_improved: Optional[ImprovementCallback] = None) -> SearchResult:
        evo = self.settings.evolutionary
        strategy = EvolutionarySearch(
            min_population=evo.min_population,
            max_population=evo.max_population,
            stagnation_generations=evo.stagnation_generations,
            max_generations=evo.max_generations,
            elite_fraction=evo.elite_fraction,
            mutation_rate=evo.mutation_rate,
            mutation_scale=evo.mutation_scale,
            decimals=evo.decimals,
            seed=evo.seed,
            **self._common(),
        )
        return strategy.search(schedule, on_improved=on_improved)
