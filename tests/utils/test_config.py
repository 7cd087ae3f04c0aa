# Tests for MDISimulator.utils.config

import json

import pytest
import yaml

from MDISimulator.utils.config import (
    DEFAULT_CONFIG_FILENAME, ConfigManager, EvolutionarySettings, ObjectiveSettings,
    ObjectiveWeights, SimulationSettings, TunerSettings, get_config_value, load_config
)


@pytest.fixture
def dummy_yaml_config_file(tmp_path):
    content = {
        "dosage": {"min_amount": 2, "max_amount": 30},
        "simulation": {"days": 2, "model": "compartment", "model_params": {"insulin_sensitivity": 0.03}},
        "objective": {"warmup_weight": 0.5, "weights": {"hypo": 2.0, "dose": 0.1}},
        "search": {
            "local": {"steps": 50, "seed": 11},
            "evolutionary": {"min_population": 10, "max_population": 20},
            "parallelism": {"max_workers": 4},
        },
    }
    file_path = tmp_path / "test_config.yaml"
    with open(file_path, "w") as f:
        yaml.dump(content, f)
    return file_path


@pytest.fixture
def dummy_json_config_file(tmp_path):
    content = {
        "simulation": {"days": 5},
        "search": {"grid": {"min_amount": 10, "max_amount": 12}},
    }
    file_path = tmp_path / "test_config.json"
    with open(file_path, "w") as f:
        json.dump(content, f)
    return file_path


def test_load_config_yaml(dummy_yaml_config_file):
    """Test loading from a YAML file."""
    config = load_config(str(dummy_yaml_config_file))
    assert config["simulation"]["days"] == 2
    assert config["search"]["local"]["seed"] == 11


def test_load_config_json(dummy_json_config_file):
    """Test loading from a JSON file."""
    config = load_config(str(dummy_json_config_file))
    assert config["simulation"]["days"] == 5


def test_load_config_non_existent_file():
    """Test loading a non-existent file returns empty dict."""
    assert load_config("non_existent_config_file.yaml") == {}


def test_load_config_unknown_format(tmp_path):
    """Test loading an unknown file format."""
    file_path = tmp_path / "test_config.txt"
    with open(file_path, "w") as f:
        f.write("some_setting = value")
    assert load_config(str(file_path)) == {}


def test_load_config_malformed_yaml(tmp_path):
    file_path = tmp_path / "broken.yaml"
    with open(file_path, "w") as f:
        f.write("dosage: [1, 2\n")
    assert load_config(str(file_path)) == {}


def test_load_config_non_mapping(tmp_path):
    file_path = tmp_path / "list.yaml"
    with open(file_path, "w") as f:
        yaml.dump([1, 2, 3], f)
    assert load_config(str(file_path)) == {}


def test_load_config_default_file(tmp_path, monkeypatch):
    """Test loading default config file if no path is provided."""
    with open(tmp_path / DEFAULT_CONFIG_FILENAME, "w") as f:
        yaml.dump({"simulation": {"days": 4}}, f)

    monkeypatch.chdir(tmp_path)
    assert load_config()["simulation"]["days"] == 4


def test_load_config_no_default_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert load_config() == {}


def test_get_config_value():
    """Test retrieving values using dot-separated keys."""
    config = {"search": {"local": {"steps": 10}}, "top_item": "value"}
    assert get_config_value(config, "top_item") == "value"
    assert get_config_value(config, "search.local.steps") == 10
    assert get_config_value(config, "search.grid.chunk_size", 256) == 256
    assert get_config_value(config, "search.local.steps.deeper") is None


def test_config_manager(dummy_yaml_config_file, dummy_json_config_file):
    manager = ConfigManager(str(dummy_yaml_config_file))
    assert manager.get("dosage.max_amount") == 30
    assert manager.get_section("search.local") == {"steps": 50, "seed": 11}
    assert manager.get_section("search.local.steps") == {}
    assert manager.get_section("non.existent") == {}
    assert manager.settings().local.steps == 50

    manager.reload(str(dummy_json_config_file))
    assert manager.get("simulation.days") == 5
    assert manager.get("dosage.max_amount") is None


def test_tuner_settings_defaults():
    settings = TunerSettings()
    assert settings.dosage.min_amount == 0.0
    assert settings.dosage.max_amount == 40.0
    assert settings.simulation.days == 3
    assert settings.simulation.model == "compartment"
    assert settings.objective.hypo_threshold == 4.0
    assert settings.objective.hyper_threshold == 10.0
    assert settings.objective.weights == ObjectiveWeights(1.0, 0.8, 0.3, 0.5)
    assert settings.evolutionary.min_population == 50
    assert settings.evolutionary.max_population == 100
    assert settings.evolutionary.stagnation_generations == 100
    assert settings.parallelism.min_workers == 1


def test_tuner_settings_from_file(dummy_yaml_config_file):
    settings = TunerSettings.from_file(str(dummy_yaml_config_file))

    assert settings.dosage.min_amount == 2.0
    assert settings.simulation.days == 2
    assert settings.simulation.model_params == {"insulin_sensitivity": 0.03}
    assert settings.objective.warmup_weight == 0.5
    assert settings.objective.weights.hypo == 2.0
    assert settings.objective.weights.hyper == 0.8
    assert settings.objective.weights.dose == 0.1
    assert settings.local.seed == 11
    assert settings.evolutionary.max_population == 20
    assert settings.parallelism.max_workers == 4


def test_unknown_keys_are_ignored():
    settings = TunerSettings.from_config({"simulation": {"days": 2, "colour": "blue"}, "extra": 1})
    assert settings.simulation.days == 2


def test_to_dict_round_trip(dummy_yaml_config_file):
    settings = TunerSettings.from_file(str(dummy_yaml_config_file))
    assert TunerSettings.from_config(settings.to_dict()) == settings


@pytest.mark.parametrize("factory", [
    lambda: SimulationSettings(days=0),
    lambda: ObjectiveSettings(hypo_threshold=10.0, hyper_threshold=4.0),
    lambda: ObjectiveSettings(warmup_weight=-1.0),
    lambda: ObjectiveWeights(hypo=-1.0),
    lambda: ObjectiveWeights(0.0, 0.0, 0.0, 0.0),
    lambda: EvolutionarySettings(min_population=20, max_population=10),
    lambda: EvolutionarySettings(elite_fraction=1.0),
    lambda: TunerSettings.from_config({"dosage": {"min_amount": 5, "max_amount": 1}}),
    lambda: TunerSettings.from_config({"search": {"parallelism": {"min_workers": 0}}}),
])
def test_invalid_settings(factory):
    with pytest.raises(ValueError):
        factory()
