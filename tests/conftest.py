# Shared fixtures for the MDISimulator test suite.

import pytest

from MDISimulator.core.data_types import DosingSchedule, IntakeEvent, IntakeKind
from MDISimulator.core.simulation_engine import SimulationEngine

from tests.stubs import RecordingFactory


@pytest.fixture
def reference_schedule():
    """A typical day: 32U basal at 22:00 and three meals with boluses."""
    return DosingSchedule(
        basal=IntakeEvent(IntakeKind.BASAL_INSULIN, 1320, 32),
        boluses=(
            IntakeEvent(IntakeKind.BOLUS_INSULIN, 540, 18),
            IntakeEvent(IntakeKind.BOLUS_INSULIN, 780, 22),
            IntakeEvent(IntakeKind.BOLUS_INSULIN, 1140, 21),
        ),
        carbs=(
            IntakeEvent(IntakeKind.CARBOHYDRATE, 600, 24),
            IntakeEvent(IntakeKind.CARBOHYDRATE, 780, 60),
            IntakeEvent(IntakeKind.CARBOHYDRATE, 1140, 60),
        ),
    )


@pytest.fixture
def basal_only_schedule():
    return DosingSchedule(basal=IntakeEvent(IntakeKind.BASAL_INSULIN, 1320, 10))


@pytest.fixture
def two_dose_schedule():
    return DosingSchedule(
        basal=IntakeEvent(IntakeKind.BASAL_INSULIN, 1320, 10),
        boluses=(IntakeEvent(IntakeKind.BOLUS_INSULIN, 480, 4),),
        carbs=(IntakeEvent(IntakeKind.CARBOHYDRATE, 480, 50),),
    )


@pytest.fixture
def ramp_factory():
    return RecordingFactory()


@pytest.fixture
def ramp_engine(ramp_factory, tmp_path):
    return SimulationEngine(ramp_factory, log_dir=str(tmp_path / "logs"))
