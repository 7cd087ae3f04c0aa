# MDISimulator Base Classes
# Defines the abstract glucose model interface consumed by the simulation
# engine, plus the signal vocabulary shared by every model implementation.

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Tuple


class Signal:
    """Identifiers of the input signals a glucose model accepts."""
    REQUESTED_INSULIN_BASAL_RATE = uuid.UUID("B5897BBD-1E32-408A-A0D5-C5BFECF447D9")
    REQUESTED_INSULIN_BOLUS = uuid.UUID("09B16B4A-54C2-4C6A-948A-3DEF8533059B")
    CARB_INTAKE = uuid.UUID("37AA6AC1-6984-4A06-92CC-A660110D0DC7")
    CARB_RESCUE = uuid.UUID("F24920F7-3F7B-4000-B2D0-374F940E4898")
    PHYSICAL_ACTIVITY = uuid.UUID("F4438E9A-DD52-45BD-83CE-5E93615E62BD")


@dataclass(frozen=True)
class ScheduledSignal:
    """A signal level to be delivered during the next model step.

    Attributes:
        signal_id (uuid.UUID): One of the `Signal` identifiers.
        level (float): Signal level (U, U/hr, g, or activity intensity).
        time (float): Delivery time as a fraction of the step, in [0, 1).
    """
    signal_id: uuid.UUID
    level: float
    time: float = 0.0

    def __post_init__(self):
        if not 0.0 <= self.time < 1.0:
            raise ValueError(f"Signal time must be in [0, 1), got {self.time}")


@dataclass(frozen=True)
class ModelReading:
    """Result of advancing a glucose model by one step."""
    ok: bool
    blood_glucose: float
    interstitial_glucose: float
    insulin_on_board: float
    carbs_on_board: float


class BaseGlucoseModel(ABC):
    """Abstract base class for stateful glucose-response models.

    A model instance is one session wrapping one simulated subject. Signals
    scheduled through the `schedule_*` methods are handed to the model on
    the next call to `step()` and then discarded. A session is owned by a
    single simulation run and must be terminated exactly once.
    """
    def __init__(self):
        self._pending: List[ScheduledSignal] = []

    @property
    def pending_signals(self) -> Tuple[ScheduledSignal, ...]:
        return tuple(self._pending)

    def schedule_signal(self, signal_id: uuid.UUID, level: float, time: float = 0.0) -> None:
        """Schedules a signal level to be sent with the next step.

        Args:
            signal_id (uuid.UUID): Signal identifier.
            level (float): Signal level.
            time (float): Relative time within the step, in [0, 1).
        """
        self._pending.append(ScheduledSignal(signal_id, float(level), float(time)))

    def schedule_insulin_bolus(self, level: float, time: float = 0.0) -> None:
        """Requests an insulin bolus of `level` U."""
        self.schedule_signal(Signal.REQUESTED_INSULIN_BOLUS, level, time)

    def schedule_insulin_basal_rate(self, level: float, time: float = 0.0) -> None:
        """Requests a basal insulin rate of `level` U/hr."""
        self.schedule_signal(Signal.REQUESTED_INSULIN_BASAL_RATE, level, time)

    def schedule_carbohydrates_intake(self, level: float, time: float = 0.0) -> None:
        """Requests a regular (meal) carbohydrate intake of `level` g."""
        self.schedule_signal(Signal.CARB_INTAKE, level, time)

    def schedule_carbohydrates_rescue(self, level: float, time: float = 0.0) -> None:
        """Requests a rescue carbohydrate intake of `level` g."""
        self.schedule_signal(Signal.CARB_RESCUE, level, time)

    def schedule_physical_activity(self, level: float, time: float = 0.0) -> None:
        """Requests physical activity of the given intensity.

        There is no timer ending the exercise; schedule a level of 0.0 to
        stop it. Common values are 0.1 (light), 0.25 (medium) and 0.4
        (intensive).
        """
        self.schedule_signal(Signal.PHYSICAL_ACTIVITY, level, time)

    def step(self) -> ModelReading:
        """Advances the model by one step, consuming the pending signals."""
        signals = tuple(self._pending)
        self._pending.clear()
        return self._advance(signals)

    @abstractmethod
    def _advance(self, signals: Tuple[ScheduledSignal, ...]) -> ModelReading:
        """Advances the underlying model by one step with the given inputs.

        Args:
            signals (Tuple[ScheduledSignal, ...]): Signals to deliver
                during this step.

        Returns:
            ModelReading: Readings at the end of the step; `ok` is False
                if the step failed.
        """
        pass

    @abstractmethod
    def terminate(self) -> bool:
        """Releases the session. May block.

        Returns:
            bool: True if the session was released, False if it was
                already invalid or the release failed.
        """
        pass


# Builds a fresh model session; receives the per-run log target path.
ModelFactory = Callable[[str], BaseGlucoseModel]
