# MDISimulator Simulation Engine
# Turns a sparse dosing schedule into a dense per-minute glucose trace by
# stepping a glucose model one simulated minute at a time.

import logging
import os
import uuid
from typing import List

from .base_classes import BaseGlucoseModel, ModelFactory
from .data_types import (
    HOURS_PER_DAY, MINUTES_PER_DAY, DosingSchedule, IntakeEvent, IntakeKind,
    OutputSample, OutputTrace
)
from .exceptions import InvalidSchedule, ModelInitError, SimulationStepError


class SimulationEngine:
    """Runs a dosing schedule, repeated every day, through a glucose model.

    Every call to `simulate` creates its own model session through
    `model_factory`, so one engine can serve many concurrent evaluations.
    Each session gets a distinct log target under `log_dir`.

    Attributes:
        model_factory (ModelFactory): Creates a model session given a log
            target path.
        log_dir (str): Directory for per-run model log files.
    """
    def __init__(self, model_factory: ModelFactory, log_dir: str = "."):
        self.model_factory = model_factory
        self.log_dir = log_dir
        self.logger = logging.getLogger(__name__)

    def _new_log_target(self) -> str:
        return os.path.join(self.log_dir, f"run-{uuid.uuid4().hex}.txt")

    def _open_session(self) -> BaseGlucoseModel:
        log_target = self._new_log_target()
        try:
            return self.model_factory(log_target)
        except ModelInitError:
            raise
        except Exception as e:
            raise ModelInitError(f"Could not create glucose model session: {e}") from e

    def _close_session(self, model: BaseGlucoseModel) -> None:
        # runs inside `finally`; must not replace the error that ended the run
        try:
            terminated = model.terminate()
        except Exception:
            self.logger.warning("Glucose model session raised while terminating", exc_info=True)
            return
        if not terminated:
            self.logger.warning("Glucose model session did not terminate cleanly")

    def _record_step(self, model: BaseGlucoseModel, absolute_minute: int) -> OutputSample:
        reading = model.step()
        if not reading.ok:
            raise SimulationStepError(absolute_minute)
        return OutputSample(
            absolute_minute=absolute_minute,
            blood_glucose=reading.blood_glucose,
            carbs_on_board=reading.carbs_on_board,
            insulin_on_board=reading.insulin_on_board,
            interstitial_glucose=reading.interstitial_glucose,
        )

    def _inject(self, model: BaseGlucoseModel, event: IntakeEvent) -> None:
        if event.kind is IntakeKind.BASAL_INSULIN:
            # The daily long-acting dose is delivered as a constant U/hr rate.
            model.schedule_insulin_basal_rate(event.amount / HOURS_PER_DAY, 0.0)
        elif event.kind is IntakeKind.BOLUS_INSULIN:
            model.schedule_insulin_bolus(event.amount, 0.0)
        elif event.kind is IntakeKind.CARBOHYDRATE:
            model.schedule_carbohydrates_intake(event.amount, 0.0)
        else:
            raise InvalidSchedule(f"Cannot inject intake of kind {event.kind!r}")
        self.logger.debug(
            "Scheduled %s of %.2f at minute %d", event.kind.value, event.amount, event.minute_of_day
        )

    def simulate(self, schedule: DosingSchedule, days: int = 1) -> OutputTrace:
        """Simulates `schedule` repeated for `days` days.

        Events are delivered in chronological order; an event at minute
        `m` is handed to the model together with the step that produces
        the sample for minute `m`.

        Args:
            schedule (DosingSchedule): The daily plan.
            days (int): Number of days to simulate, at least 1.

        Returns:
            OutputTrace: Exactly `days * 1440` samples with consecutive
                absolute minutes starting at 0.

        Raises:
            InvalidSchedule: If `days` is less than 1.
            ModelInitError: If the model session could not be created.
            SimulationStepError: If the model fails to advance a minute.
        """
        if isinstance(days, bool) or int(days) != days or days < 1:
            raise InvalidSchedule(f"Number of simulated days must be an integer >= 1, got {days!r}")
        days = int(days)

        events = schedule.chronological_events()
        samples: List[OutputSample] = []
        model = self._open_session()
        try:
            for day in range(days):
                self.logger.debug("Day %d of %d", day + 1, days)
                today = day * MINUTES_PER_DAY
                minutes_elapsed = 0

                for event in events:
                    while minutes_elapsed < event.minute_of_day:
                        samples.append(self._record_step(model, today + minutes_elapsed))
                        minutes_elapsed += 1
                    self._inject(model, event)

                while minutes_elapsed < MINUTES_PER_DAY:
                    samples.append(self._record_step(model, today + minutes_elapsed))
                    minutes_elapsed += 1
        finally:
            self._close_session(model)

        return OutputTrace(samples=samples, days=days)

