"""Core components of the MDISimulator library.

This module provides the value types describing a dosing schedule and its
simulated output, the abstract glucose model interface, and the simulation
engine that drives a model one minute at a time.

Key Contents:
    - `SimulationEngine`: Expands a daily schedule into a per-minute trace.
    - `BaseGlucoseModel`: ABC for stateful glucose-response model sessions.
    - `DosingSchedule`, `IntakeEvent`, `DosageVector`: Schedule data model.
    - `OutputSample`, `OutputTrace`: Simulation output.
"""

from .base_classes import BaseGlucoseModel, ModelFactory, ModelReading, ScheduledSignal, Signal
from .data_types import (
    EXAMPLE_SCHEDULE,
    MINUTES_PER_DAY,
    DosageVector,
    DosingSchedule,
    ImprovementEvent,
    IntakeEvent,
    IntakeKind,
    OutputSample,
    OutputTrace,
    SearchResult,
)
from .exceptions import (
    CacheConsistencyError,
    InvalidSchedule,
    MDISimulatorError,
    ModelInitError,
    SimulationStepError,
)
from .simulation_engine import SimulationEngine

__all__ = [
    "SimulationEngine",
    "BaseGlucoseModel",
    "ModelFactory",
    "ModelReading",
    "ScheduledSignal",
    "Signal",
    "EXAMPLE_SCHEDULE",
    "MINUTES_PER_DAY",
    "DosageVector",
    "DosingSchedule",
    "ImprovementEvent",
    "IntakeEvent",
    "IntakeKind",
    "OutputSample",
    "OutputTrace",
    "SearchResult",
    "MDISimulatorError",
    "ModelInitError",
    "SimulationStepError",
    "InvalidSchedule",
    "CacheConsistencyError",
]
