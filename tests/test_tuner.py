# Tests for MDISimulator.tuner

import pytest
import yaml

from MDISimulator import EXAMPLE_SCHEDULE, DosageTuner
from MDISimulator.core.data_types import MINUTES_PER_DAY, DosingSchedule, IntakeEvent, IntakeKind
from MDISimulator.utils.config import (
    DosageSettings, EvolutionarySettings, GridSettings, LocalSearchSettings,
    SimulationSettings, TunerSettings
)

from tests.stubs import RecordingFactory


@pytest.fixture
def quick_settings(tmp_path):
    return TunerSettings(
        dosage=DosageSettings(min_amount=0, max_amount=40),
        simulation=SimulationSettings(days=1, log_dir=str(tmp_path / "logs")),
        grid=GridSettings(min_amount=9, max_amount=11),
        local=LocalSearchSettings(steps=5, seed=1),
        evolutionary=EvolutionarySettings(
            min_population=4, max_population=6, stagnation_generations=2,
            max_generations=3, seed=1,
        ),
    )


def test_simulate_and_score_with_stub_model(quick_settings, basal_only_schedule):
    factory = RecordingFactory()
    tuner = DosageTuner(quick_settings, model_factory=factory)

    trace = tuner.simulate(basal_only_schedule)
    assert len(trace) == MINUTES_PER_DAY
    assert 0.0 <= tuner.score(basal_only_schedule) <= 1.0
    assert tuner.breakdown(basal_only_schedule).hyper_fraction == pytest.approx(940 / 1440)


def test_grid_search_uses_configured_range(quick_settings, basal_only_schedule):
    tuner = DosageTuner(quick_settings, model_factory=RecordingFactory())
    result = tuner.grid_search(basal_only_schedule)

    assert result.iterations == 3
    # the ramp model ignores insulin, so the smallest dose wins on dose load
    assert result.schedule.basal.amount == 9.0


def test_searches_do_not_reuse_scores_across_schedules(quick_settings, basal_only_schedule):
    """Equal amounts with different meals are different experiments."""
    tuner = DosageTuner(quick_settings)
    feasting = DosingSchedule(
        basal=basal_only_schedule.basal,
        carbs=(IntakeEvent(IntakeKind.CARBOHYDRATE, 8 * 60, 200),),
    )

    fasting_result = tuner.grid_search(basal_only_schedule, (10, 10))
    feasting_result = tuner.grid_search(feasting, (10, 10))

    assert feasting_result.evaluations == 1
    assert feasting_result.score == pytest.approx(tuner.score(feasting))
    assert feasting_result.score != pytest.approx(fasting_result.score)


def test_local_and_evolutionary_search(quick_settings):
    tuner = DosageTuner(quick_settings, model_factory=RecordingFactory())
    start = tuner.score(EXAMPLE_SCHEDULE)

    local = tuner.local_search(EXAMPLE_SCHEDULE)
    assert len(local.history) == 5
    assert local.score <= start

    events = []
    evolved = tuner.evolutionary_search(EXAMPLE_SCHEDULE, on_improved=events.append)
    assert evolved.score <= start
    assert evolved.iterations <= 3
    assert all(e.score < start for e in events)


def test_compartment_model_end_to_end(quick_settings):
    tuner = DosageTuner(quick_settings)
    result = tuner.local_search(EXAMPLE_SCHEDULE, steps=2)
    assert 0.0 <= result.score <= 1.0
    assert result.schedule.carbs == EXAMPLE_SCHEDULE.carbs


def test_from_config_file(tmp_path):
    path = tmp_path / "tuner.yaml"
    with open(path, "w") as f:
        yaml.dump({"simulation": {"days": 1, "log_dir": str(tmp_path)}, "search": {"local": {"steps": 3}}}, f)

    tuner = DosageTuner.from_config_file(str(path), model_factory=RecordingFactory())
    assert tuner.settings.simulation.days == 1
    assert len(tuner.local_search(EXAMPLE_SCHEDULE).history) == 3
