# MDISimulator Exceptions
# Error kinds raised by the simulation driver, the model adapters and the
# search strategies.


class MDISimulatorError(Exception):
    """Base class for all errors raised by the MDISimulator library."""


class ModelInitError(MDISimulatorError):
    """The glucose model session could not be created.

    Fatal for the simulation run that requested it; never retried.
    """


class SimulationStepError(MDISimulatorError):
    """A single simulated minute failed to advance.

    Attributes:
        minute (int): The absolute minute of the failed step.
    """
    def __init__(self, minute: int, message: str = ""):
        self.minute = minute
        super().__init__(message or f"Glucose model failed to advance at minute {minute}")


class InvalidSchedule(MDISimulatorError, ValueError):
    """A dosing schedule or one of its events is malformed."""


class CacheConsistencyError(MDISimulatorError):
    """The evaluation cache returned an entry stored under a different key."""
