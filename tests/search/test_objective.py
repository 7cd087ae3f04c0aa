# Tests for MDISimulator.search.objective

import pytest

from MDISimulator.core.data_types import MINUTES_PER_DAY, OutputSample, OutputTrace
from MDISimulator.core.simulation_engine import SimulationEngine
from MDISimulator.search.objective import ObjectiveFunction
from MDISimulator.utils.config import ObjectiveSettings, ObjectiveWeights

from tests.stubs import ConstantModel


def _trace(day_values, days):
    samples = []
    for day, value in enumerate(day_values):
        for minute in range(MINUTES_PER_DAY):
            samples.append(OutputSample(day * MINUTES_PER_DAY + minute, value, 0.0, 0.0, value))
    return OutputTrace(samples=samples, days=days)


def test_ramp_end_to_end_values(ramp_engine, reference_schedule):
    """One simulated day of the 5 + k/100 ramp, computed by hand."""
    objective = ObjectiveFunction(ramp_engine, max_amount=40.0, days=1)
    result = objective.breakdown(reference_schedule)

    assert result.hypo_fraction == 0.0
    # minutes 500..1439 are at or above 10 mmol/l
    assert result.hyper_fraction == pytest.approx(940 / 1440)
    # minutes 0..499 are in [4, 10)
    assert result.tir_fraction == pytest.approx(500 / 1440)
    assert result.amplitude == pytest.approx(14.39)
    assert result.amplitude_normalized == 1.0
    assert result.dose_load == pytest.approx(93 / 160)

    expected = (0.8 * 940 / 1440 + 0.3 * 93 / 160 + 0.5 * 1.0) / 2.6
    assert result.score == pytest.approx(expected)
    assert objective.score(reference_schedule) == pytest.approx(expected)


def test_score_is_deterministic(ramp_engine, reference_schedule):
    objective = ObjectiveFunction(ramp_engine, days=2)
    assert objective.score(reference_schedule) == objective.score(reference_schedule)


def test_only_last_day_is_scored(ramp_engine, reference_schedule):
    """Over three days the ramp has left the safe band long before the last day starts."""
    result = ObjectiveFunction(ramp_engine, days=3).breakdown(reference_schedule)
    assert result.hyper_fraction == 1.0
    assert result.hypo_fraction == 0.0


def test_score_stays_in_unit_interval(reference_schedule):
    settings = ObjectiveSettings(weights=ObjectiveWeights(hypo=3.0, hyper=2.0, dose=1.0, amplitude=0.0))
    hypo_trace = _trace([2.0], days=1)
    objective = ObjectiveFunction(engine=None, settings=settings, max_amount=10.0)

    # every amount above max_amount: dose load saturates at 1
    result = objective.evaluate_trace(hypo_trace, reference_schedule)
    assert result.hypo_fraction == 1.0
    assert result.dose_load == 1.0
    assert 0.0 <= result.score <= 1.0
    assert result.score == pytest.approx((3.0 + 1.0) / 6.0)


def test_flat_in_range_trace_scores_only_dose(reference_schedule):
    objective = ObjectiveFunction(engine=None, max_amount=40.0)
    result = objective.evaluate_trace(_trace([6.0], days=1), reference_schedule)

    assert result.hypo_fraction == 0.0
    assert result.hyper_fraction == 0.0
    assert result.tir_fraction == 1.0
    assert result.amplitude == 0.0
    assert result.score == pytest.approx(0.3 * (93 / 160) / 2.6)


def test_thresholds_are_half_open(reference_schedule):
    """4.0 is not hypoglycemic, 10.0 is hyperglycemic."""
    objective = ObjectiveFunction(engine=None)
    at_hypo = objective.evaluate_trace(_trace([4.0], days=1), reference_schedule)
    at_hyper = objective.evaluate_trace(_trace([10.0], days=1), reference_schedule)
    assert at_hypo.hypo_fraction == 0.0
    assert at_hyper.hyper_fraction == 1.0


def test_warmup_days_blend_in_with_weight(reference_schedule):
    trace = _trace([3.0, 6.0], days=2)

    plain = ObjectiveFunction(engine=None).evaluate_trace(trace, reference_schedule)
    assert plain.hypo_fraction == 0.0

    blended = ObjectiveFunction(
        engine=None, settings=ObjectiveSettings(warmup_weight=1.0)
    ).evaluate_trace(trace, reference_schedule)
    assert blended.hypo_fraction == pytest.approx(0.5)
    assert blended.score > plain.score


def test_breakdown_to_dict(tmp_path, reference_schedule):
    engine = SimulationEngine(lambda target: ConstantModel(6.0), log_dir=str(tmp_path))
    result = ObjectiveFunction(engine, days=1).breakdown(reference_schedule).to_dict()
    assert set(result) == {
        "hypo_fraction", "hyper_fraction", "tir_fraction", "amplitude",
        "amplitude_normalized", "dose_load", "score",
    }
