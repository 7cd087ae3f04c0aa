"""
MDISimulator Data Types
Value types describing a day of multiple daily injections (MDI) and the
per-minute trace produced by simulating it.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .exceptions import InvalidSchedule

MINUTES_PER_HOUR = 60
HOURS_PER_DAY = 24
MINUTES_PER_DAY = HOURS_PER_DAY * MINUTES_PER_HOUR


class IntakeKind(Enum):
    """Kinds of timed events in a dosing schedule."""
    BASAL_INSULIN = "basal_insulin"
    BOLUS_INSULIN = "bolus_insulin"
    CARBOHYDRATE = "carbohydrate"


@dataclass(frozen=True)
class IntakeEvent:
    """A single insulin injection or meal at a fixed minute of the day.

    Attributes:
        kind (IntakeKind): What is being taken.
        minute_of_day (int): Minute after midnight, in [0, 1440).
        amount (float): Units of insulin, or grams of carbohydrates.
    """
    kind: IntakeKind
    minute_of_day: int
    amount: float

    def __post_init__(self):
        if not isinstance(self.kind, IntakeKind):
            raise InvalidSchedule(f"Unknown intake kind: {self.kind!r}")
        if isinstance(self.minute_of_day, bool) or int(self.minute_of_day) != self.minute_of_day:
            raise InvalidSchedule(f"Minute of day must be an integer, got {self.minute_of_day!r}")
        if not 0 <= self.minute_of_day < MINUTES_PER_DAY:
            raise InvalidSchedule(
                f"Minute of day must be in [0, {MINUTES_PER_DAY}), got {self.minute_of_day}"
            )
        amount = float(self.amount)
        if not math.isfinite(amount) or amount < 0:
            raise InvalidSchedule(f"Intake amount must be finite and >= 0, got {self.amount!r}")
        object.__setattr__(self, "minute_of_day", int(self.minute_of_day))
        object.__setattr__(self, "amount", amount)

    def with_amount(self, amount: float) -> "IntakeEvent":
        """Returns a copy of this event with a different amount."""
        return IntakeEvent(self.kind, self.minute_of_day, amount)


@dataclass(frozen=True)
class DosageVector:
    """The tunable amounts of a schedule: basal first, then each bolus.

    Two vectors are equal (and hash equally) exactly when their amount
    sequences are equal, which makes them usable as cache keys.
    """
    basal_amount: float
    bolus_amounts: Tuple[float, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "basal_amount", float(self.basal_amount))
        object.__setattr__(self, "bolus_amounts", tuple(float(a) for a in self.bolus_amounts))

    @classmethod
    def from_amounts(cls, amounts: Sequence[float]) -> "DosageVector":
        """Builds a vector from a flat sequence `[basal, bolus_1, ...]`."""
        values = [float(a) for a in amounts]
        if not values:
            raise InvalidSchedule("A dosage vector needs at least the basal amount")
        return cls(values[0], tuple(values[1:]))

    @property
    def amounts(self) -> Tuple[float, ...]:
        return (self.basal_amount,) + self.bolus_amounts

    def to_array(self) -> np.ndarray:
        return np.asarray(self.amounts, dtype=float)

    @property
    def total(self) -> float:
        return float(sum(self.amounts))

    def __len__(self) -> int:
        return 1 + len(self.bolus_amounts)


@dataclass(frozen=True)
class DosingSchedule:
    """One day's plan: a basal injection, boluses and carbohydrate intakes.

    Only the dosage amounts are tunable; the timings and the carbohydrate
    events are fixed inputs. Schedules are never mutated, the `with_*`
    methods return modified copies.
    """
    basal: IntakeEvent
    boluses: Tuple[IntakeEvent, ...] = ()
    carbs: Tuple[IntakeEvent, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "boluses", tuple(self.boluses))
        object.__setattr__(self, "carbs", tuple(self.carbs))

        if not isinstance(self.basal, IntakeEvent) or self.basal.kind is not IntakeKind.BASAL_INSULIN:
            raise InvalidSchedule("The basal event must be a BASAL_INSULIN intake")
        for event in self.boluses:
            if not isinstance(event, IntakeEvent) or event.kind is not IntakeKind.BOLUS_INSULIN:
                raise InvalidSchedule(f"Every bolus must be a BOLUS_INSULIN intake, got {event!r}")
        for event in self.carbs:
            if not isinstance(event, IntakeEvent) or event.kind is not IntakeKind.CARBOHYDRATE:
                raise InvalidSchedule(f"Every carb event must be a CARBOHYDRATE intake, got {event!r}")

    def with_basal_amount(self, amount: float) -> "DosingSchedule":
        return DosingSchedule(self.basal.with_amount(amount), self.boluses, self.carbs)

    def with_bolus_amounts(self, amounts: Sequence[float]) -> "DosingSchedule":
        amounts = list(amounts)
        if len(amounts) != len(self.boluses):
            raise InvalidSchedule(
                f"Expected {len(self.boluses)} bolus amounts, got {len(amounts)}"
            )
        boluses = tuple(b.with_amount(a) for b, a in zip(self.boluses, amounts))
        return DosingSchedule(self.basal, boluses, self.carbs)

    def with_dosage(self, vector: DosageVector) -> "DosingSchedule":
        """Returns a copy with both the basal and the bolus amounts replaced."""
        return self.with_basal_amount(vector.basal_amount).with_bolus_amounts(vector.bolus_amounts)

    def dosage_vector(self) -> DosageVector:
        return DosageVector(self.basal.amount, tuple(b.amount for b in self.boluses))

    @property
    def total_insulin(self) -> float:
        return self.basal.amount + sum(b.amount for b in self.boluses)

    def events(self) -> List[IntakeEvent]:
        """All events in insertion order: basal, boluses, carbs."""
        return [self.basal, *self.boluses, *self.carbs]

    def chronological_events(self) -> List[IntakeEvent]:
        """All events ordered by minute of day.

        The sort is stable, so events at the same minute keep the
        basal, boluses, carbs insertion order.
        """
        return sorted(self.events(), key=lambda event: event.minute_of_day)


@dataclass(frozen=True)
class OutputSample:
    """Model readings for one simulated minute."""
    absolute_minute: int
    blood_glucose: float
    carbs_on_board: float
    insulin_on_board: float
    interstitial_glucose: float

    @property
    def day(self) -> int:
        return self.absolute_minute // MINUTES_PER_DAY

    @property
    def minute_of_day(self) -> int:
        return self.absolute_minute % MINUTES_PER_DAY


@dataclass
class OutputTrace:
    """Dense per-minute output of a simulation, `days * 1440` samples long."""
    samples: List[OutputSample]
    days: int

    def __len__(self) -> int:
        return len(self.samples)

    def __iter__(self) -> Iterator[OutputSample]:
        return iter(self.samples)

    def __getitem__(self, index):
        return self.samples[index]

    def day_samples(self, day: int) -> List[OutputSample]:
        if not 0 <= day < self.days:
            raise IndexError(f"Day {day} is outside a {self.days}-day trace")
        start = day * MINUTES_PER_DAY
        return self.samples[start:start + MINUTES_PER_DAY]

    def blood_glucose(self, start_day: int = 0, end_day: Optional[int] = None) -> np.ndarray:
        """Blood glucose for days in `[start_day, end_day)` as an array."""
        end_day = self.days if end_day is None else end_day
        window = self.samples[start_day * MINUTES_PER_DAY:end_day * MINUTES_PER_DAY]
        return np.fromiter((s.blood_glucose for s in window), dtype=float, count=len(window))


@dataclass(frozen=True)
class ImprovementEvent:
    """Passed to a search's `on_improved` callback whenever the best score drops.

    Attributes:
        iteration (int): Step, generation or evaluation index, depending on
            the strategy.
        score (float): The new best objective value (lower is better).
        schedule (DosingSchedule): The schedule achieving it.
    """
    iteration: int
    score: float
    schedule: DosingSchedule


ImprovementCallback = Callable[[ImprovementEvent], None]


@dataclass
class SearchResult:
    """Outcome of a search run."""
    schedule: DosingSchedule
    score: float
    evaluations: int = 0
    cache_hits: int = 0
    iterations: int = 0
    history: List[float] = field(default_factory=list)


def _hours(hours: float) -> int:
    return int(hours * MINUTES_PER_HOUR)


# Reference day: a 32U long-acting dose at 22:00 and three meal boluses.
EXAMPLE_SCHEDULE = DosingSchedule(
    basal=IntakeEvent(IntakeKind.BASAL_INSULIN, _hours(22), 32),
    boluses=(
        IntakeEvent(IntakeKind.BOLUS_INSULIN, _hours(9), 18),
        IntakeEvent(IntakeKind.BOLUS_INSULIN, _hours(13), 22),
        IntakeEvent(IntakeKind.BOLUS_INSULIN, _hours(19), 21),
    ),
    carbs=(
        IntakeEvent(IntakeKind.CARBOHYDRATE, _hours(10), 24),
        IntakeEvent(IntakeKind.CARBOHYDRATE, _hours(12), 12),
        IntakeEvent(IntakeKind.CARBOHYDRATE, _hours(13), 60),
        IntakeEvent(IntakeKind.CARBOHYDRATE, _hours(19), 60),
        IntakeEvent(IntakeKind.CARBOHYDRATE, _hours(22), 24),
    ),
)
