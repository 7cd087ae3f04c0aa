"""Glucose model implementations for the MDISimulator library.

Key Contents:
    - `ScgmsGameModel`: Session of the native SmartCGMS game library.
    - `CompartmentGlucoseModel`: Built-in deterministic compartment model.
    - `create_model_factory`: Builds the model factory named in the
      simulation settings.
"""

from ..core.base_classes import ModelFactory
from .compartment_model import CompartmentGlucoseModel
from .scgms_game import ScgmsGameModel, load_library

MODEL_NAMES = ("compartment", "scgms")


def create_model_factory(settings) -> ModelFactory:
    """Returns a callable creating one model session per log target.

    Args:
        settings (SimulationSettings): Simulation section of the tuner
            settings; `settings.model` selects the implementation.

    Raises:
        ValueError: If the model name is unknown.
    """
    if settings.model == "compartment":
        params = dict(settings.model_params)

        def factory(log_target: str) -> CompartmentGlucoseModel:
            return CompartmentGlucoseModel(params)
        return factory

    if settings.model == "scgms":
        def factory(log_target: str) -> ScgmsGameModel:
            return ScgmsGameModel(
                config_class=settings.model_class,
                config_id=settings.model_id,
                step_ms=settings.step_ms,
                log_target=log_target,
                library_name=settings.library,
            )
        return factory

    raise ValueError(f"Unknown glucose model '{settings.model}'. Expected one of {MODEL_NAMES}")


__all__ = [
    "CompartmentGlucoseModel",
    "ScgmsGameModel",
    "load_library",
    "create_model_factory",
    "MODEL_NAMES",
]
