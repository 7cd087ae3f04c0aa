# MDISimulator Objective Function
# Scores a dosing schedule by simulating it and combining hypoglycemia time,
# hyperglycemia time, glucose amplitude and total insulin into one number.

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ..core.data_types import DosingSchedule, OutputTrace
from ..core.simulation_engine import SimulationEngine
from ..utils import metrics
from ..utils.config import ObjectiveSettings


@dataclass(frozen=True)
class ObjectiveBreakdown:
    """Normalized sub-metrics of one evaluation and the resulting score.

    `tir_fraction` is the steady-state time in range, reported for
    inspection only; it does not enter the score.
    """
    hypo_fraction: float
    hyper_fraction: float
    tir_fraction: float
    amplitude: float
    amplitude_normalized: float
    dose_load: float
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ObjectiveFunction:
    """Maps a schedule to a score in [0, 1]; lower is better.

    Only the last simulated day, the steady-state window, is scored at full
    weight: the long-acting basal insulin needs the earlier days to build up.
    With `warmup_weight > 0`, hypo- and hyperglycemia on the warm-up days are
    blended in at that relative weight.

    The score is the weighted mean of the normalized sub-metrics, so it stays
    in [0, 1] for any non-negative weights. Given a deterministic model the
    score is deterministic.

    Attributes:
        engine (SimulationEngine): Runs the schedule through a model.
        settings (ObjectiveSettings): Thresholds and weights.
        max_amount (float): Upper bound of a single insulin amount, used to
            normalize the total dose.
        days (int): Default number of simulated days.
    """
    def __init__(self, engine: SimulationEngine, settings: Optional[ObjectiveSettings] = None,
                 max_amount: float = 40.0, days: int = 3):
        self.engine = engine
        self.settings = settings or ObjectiveSettings()
        self.max_amount = max_amount
        self.days = days
        self.logger = logging.getLogger(__name__)

    def score(self, schedule: DosingSchedule, days: Optional[int] = None) -> float:
        """Simulates `schedule` for `days` days and returns its score."""
        return self.breakdown(schedule, days).score

    def breakdown(self, schedule: DosingSchedule, days: Optional[int] = None) -> ObjectiveBreakdown:
        """Like `score`, but returns every sub-metric as well."""
        trace = self.engine.simulate(schedule, self.days if days is None else days)
        result = self.evaluate_trace(trace, schedule)
        self.logger.debug(
            "Scored amounts %s: %.6f", schedule.dosage_vector().amounts, result.score
        )
        return result

    def _blend_warmup(self, steady: float, warmup: float) -> float:
        w = self.settings.warmup_weight
        return (steady + w * warmup) / (1.0 + w)

    def evaluate_trace(self, trace: OutputTrace, schedule: DosingSchedule) -> ObjectiveBreakdown:
        """Scores an already simulated trace of `schedule`."""
        s = self.settings
        steady = trace.blood_glucose(start_day=trace.days - 1)

        hypo = metrics.calculate_time_below_range(steady, s.hypo_threshold)
        hyper = metrics.calculate_time_above_range(steady, s.hyper_threshold)
        if s.warmup_weight > 0 and trace.days > 1:
            warmup = trace.blood_glucose(start_day=0, end_day=trace.days - 1)
            hypo = self._blend_warmup(hypo, metrics.calculate_time_below_range(warmup, s.hypo_threshold))
            hyper = self._blend_warmup(hyper, metrics.calculate_time_above_range(warmup, s.hyper_threshold))

        tir = metrics.calculate_tir(steady, s.hypo_threshold, s.hyper_threshold)
        amplitude = metrics.calculate_amplitude(steady)
        amplitude_normalized = metrics.normalize_amplitude(amplitude, s.amplitude_saturation)
        dose_load = metrics.calculate_dose_load(schedule.dosage_vector().amounts, self.max_amount)

        w = s.weights
        score = (
            hypo * w.hypo
            + hyper * w.hyper
            + dose_load * w.dose
            + amplitude_normalized * w.amplitude
        ) / w.total

        return ObjectiveBreakdown(
            hypo_fraction=hypo,
            hyper_fraction=hyper,
            tir_fraction=tir,
            amplitude=amplitude,
            amplitude_normalized=amplitude_normalized,
            dose_load=dose_load,
            score=float(score),
        )
