# Tests for MDISimulator.search.local_search

import pytest

from MDISimulator.search.local_search import StochasticLocalSearch

from tests.stubs import QuadraticObjective


def test_converges_in_one_dimension(basal_only_schedule):
    result = StochasticLocalSearch(QuadraticObjective([3]), seed=0).search(basal_only_schedule, steps=200)
    assert result.schedule.basal.amount == 3.0
    assert result.score == 0.0


def test_history_never_increases(two_dose_schedule):
    result = StochasticLocalSearch(QuadraticObjective([20, 9]), seed=42).search(two_dose_schedule, steps=100)

    assert len(result.history) == 100
    assert result.iterations == 100
    assert all(b <= a for a, b in zip(result.history, result.history[1:]))
    assert result.score == result.history[-1]
    assert result.score <= (10 - 20) ** 2 + (4 - 9) ** 2


def test_amounts_stay_within_bounds(basal_only_schedule):
    strategy = StochasticLocalSearch(QuadraticObjective([-5]), min_amount=0, max_amount=40, seed=1)
    result = strategy.search(basal_only_schedule, steps=100)
    assert result.schedule.basal.amount == 0.0


def test_zero_steps_returns_start(two_dose_schedule):
    objective = QuadraticObjective([0, 0])
    result = StochasticLocalSearch(objective, seed=0).search(two_dose_schedule, steps=0)
    assert result.schedule == two_dose_schedule
    assert result.history == []
    assert objective.calls == 1


def test_same_seed_same_walk(two_dose_schedule):
    first = StochasticLocalSearch(QuadraticObjective([5, 5]), seed=9).search(two_dose_schedule, steps=50)
    second = StochasticLocalSearch(QuadraticObjective([5, 5]), seed=9).search(two_dose_schedule, steps=50)
    assert first.history == second.history
    assert first.schedule == second.schedule


def test_callback_on_every_acceptance(basal_only_schedule):
    events = []
    result = StochasticLocalSearch(QuadraticObjective([3]), seed=0).search(
        basal_only_schedule, steps=200, on_improved=events.append
    )
    assert events
    assert all(b.score < a.score for a, b in zip(events, events[1:]))
    assert all(b.iteration > a.iteration for a, b in zip(events, events[1:]))
    assert events[-1].score == result.score


def test_rejects_bad_arguments(basal_only_schedule):
    with pytest.raises(ValueError):
        StochasticLocalSearch(QuadraticObjective([1]), max_delta=0)
    with pytest.raises(ValueError):
        StochasticLocalSearch(QuadraticObjective([1])).search(basal_only_schedule, steps=-1)
