"""
MDISimulator: Dosage tuning for multiple daily injection (MDI) therapy

Searches for a daily basal/bolus insulin schedule that keeps a simulated
patient's blood glucose within a safe band. A schedule is simulated minute
by minute through a glucose model, scored, and improved by one of three
search strategies: exhaustive grid search, stochastic local search or
evolutionary search.

Example usage:
    >>> from MDISimulator import DosageTuner, EXAMPLE_SCHEDULE
    >>>
    >>> tuner = DosageTuner()
    >>> print(tuner.score(EXAMPLE_SCHEDULE))
    >>> result = tuner.evolutionary_search(EXAMPLE_SCHEDULE)
    >>> print(result.score, result.schedule.dosage_vector().amounts)
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .core import (
    EXAMPLE_SCHEDULE,
    BaseGlucoseModel,
    CacheConsistencyError,
    DosageVector,
    DosingSchedule,
    ImprovementEvent,
    IntakeEvent,
    IntakeKind,
    InvalidSchedule,
    MDISimulatorError,
    ModelInitError,
    OutputSample,
    OutputTrace,
    SearchResult,
    SimulationEngine,
    SimulationStepError,
)
from .models import CompartmentGlucoseModel, ScgmsGameModel
from .search import (
    EvaluationCache,
    EvolutionarySearch,
    GridSearch,
    ObjectiveFunction,
    StochasticLocalSearch,
)
from .tuner import DosageTuner
from .utils.config import ConfigManager, TunerSettings

__all__ = [
    # Main API
    "DosageTuner",
    "TunerSettings",
    "ConfigManager",

    # Data model
    "EXAMPLE_SCHEDULE",
    "DosageVector",
    "DosingSchedule",
    "ImprovementEvent",
    "IntakeEvent",
    "IntakeKind",
    "OutputSample",
    "OutputTrace",
    "SearchResult",

    # Simulation
    "SimulationEngine",
    "BaseGlucoseModel",
    "CompartmentGlucoseModel",
    "ScgmsGameModel",

    # Search
    "ObjectiveFunction",
    "EvaluationCache",
    "GridSearch",
    "StochasticLocalSearch",
    "EvolutionarySearch",

    # Errors
    "MDISimulatorError",
    "ModelInitError",
    "SimulationStepError",
    "InvalidSchedule",
    "CacheConsistencyError",

    # Metadata
    "__version__",
    "__license__",
]
