# MDISimulator Configuration Management
# Handles loading configuration files and turning them into typed settings
# for the simulation, the objective function and the search strategies.

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_FILENAME = "mdisimulator_config.yaml"  # Default config filename to look for

logger = logging.getLogger(__name__)


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Loads configuration parameters from a YAML or JSON file.

    If `config_path` is not provided, this function will attempt to load
    from a file named `DEFAULT_CONFIG_FILENAME` in the current working
    directory. If the specified file (or default) is not found, or if
    an error occurs during loading (e.g., malformed file), an empty
    dictionary is returned and a warning is logged, so built-in defaults
    apply.

    Args:
        config_path (Optional[str]): The full path to the configuration
            file. Supports `.yaml`, `.yml`, and `.json` extensions. If
            None, attempts to load `DEFAULT_CONFIG_FILENAME` from the
            current directory.

    Returns:
        Dict[str, Any]: A dictionary containing the loaded configuration
            parameters. Returns an empty dictionary if loading fails or
            no file is found.
    """
    resolved_path = config_path
    if resolved_path is None:
        if os.path.exists(DEFAULT_CONFIG_FILENAME):
            resolved_path = DEFAULT_CONFIG_FILENAME
            logger.info("No config path provided, using default '%s' in CWD.", DEFAULT_CONFIG_FILENAME)
        else:
            logger.info(
                "No config path provided and default '%s' not found in CWD. Using built-in defaults.",
                DEFAULT_CONFIG_FILENAME,
            )
            return {}

    if not os.path.exists(resolved_path):
        logger.warning("Configuration file not found at '%s'. Using built-in defaults.", resolved_path)
        return {}

    try:
        with open(resolved_path, 'r', encoding='utf-8') as f:
            if resolved_path.endswith((".yaml", ".yml")):
                config_data = yaml.safe_load(f)
            elif resolved_path.endswith(".json"):
                config_data = json.load(f)
            else:
                logger.warning(
                    "Unknown config file format for '%s'. Supported: .yaml, .yml, .json.",
                    resolved_path,
                )
                return {}
    except yaml.YAMLError as ye:
        logger.warning("Error parsing YAML configuration from '%s': %s", resolved_path, ye)
        return {}
    except json.JSONDecodeError as je:
        logger.warning("Error parsing JSON configuration from '%s': %s", resolved_path, je)
        return {}

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        logger.warning("Configuration in '%s' is not a mapping. Ignoring it.", resolved_path)
        return {}
    logger.info("Configuration loaded successfully from '%s'.", resolved_path)
    return config_data


def get_config_value(config: Dict[str, Any], key_path: str,
                     default: Optional[Any] = None) -> Any:
    """Retrieves a value from a nested config dict using a dot-separated key.

    Example:
        `get_config_value(config, "search.local.steps", 200)`
        This would look for `config['search']['local']['steps']`.

    Args:
        config (Dict[str, Any]): The configuration dictionary to search
            within.
        key_path (str): A dot-separated path to the desired key.
        default (Optional[Any]): The value to return if the key path is
            not found. Defaults to None.

    Returns:
        Any: The configuration value found at the `key_path`, or the
            `default` value if the path is not found or invalid.
    """
    keys = key_path.split('.')
    current_level = config
    for key in keys:
        if isinstance(current_level, dict) and key in current_level:
            current_level = current_level[key]
        else:
            return default  # Key not found or path is invalid
    return current_level


class ConfigManager:
    """A manager class for handling library configurations.

    Loads settings from a YAML or JSON file and gives dot-path access to
    them. `settings()` converts the loaded data into `TunerSettings`.

    Attributes:
        config_data (Dict[str, Any]): The dictionary holding all loaded
            configuration parameters.
    """
    def __init__(self, config_file_path: Optional[str] = None):
        self._config_file_path: Optional[str] = config_file_path  # Stored for reload
        self.config_data: Dict[str, Any] = load_config(config_file_path)

    def get(self, key_path: str, default: Optional[Any] = None) -> Any:
        """Retrieves a configuration value using a dot-separated key path."""
        return get_config_value(self.config_data, key_path, default)

    def get_section(self, section_key_path: str) -> Dict[str, Any]:
        """Retrieves an entire section of the configuration as a dictionary.

        Returns an empty dictionary if the section is missing or is not a
        mapping.
        """
        section = self.get(section_key_path, default={})
        return section if isinstance(section, dict) else {}

    def reload(self, new_config_file_path: Optional[str] = None):
        """Reloads the configuration, optionally from a new path."""
        if new_config_file_path is not None:
            self._config_file_path = new_config_file_path
        logger.info(
            "Reloading configuration from '%s'.",
            self._config_file_path if self._config_file_path else DEFAULT_CONFIG_FILENAME,
        )
        self.config_data = load_config(self._config_file_path)

    def settings(self) -> "TunerSettings":
        return TunerSettings.from_config(self.config_data)


def _pick(section: Dict[str, Any], defaults: Any) -> Dict[str, Any]:
    """Keeps only the keys of `section` that are fields of `defaults`."""
    known = asdict(defaults)
    return {k: v for k, v in section.items() if k in known}


@dataclass
class DosageSettings:
    """Bounds for every tunable insulin amount (U)."""
    min_amount: float = 0.0
    max_amount: float = 40.0

    def __post_init__(self):
        self.min_amount = float(self.min_amount)
        self.max_amount = float(self.max_amount)
        if self.min_amount < 0 or self.min_amount > self.max_amount:
            raise ValueError(
                f"Invalid dosage bounds [{self.min_amount}, {self.max_amount}]"
            )


@dataclass
class SimulationSettings:
    """How schedules are simulated."""
    days: int = 3
    model: str = "compartment"
    model_class: int = 1
    model_id: int = 1
    step_ms: int = 60 * 1000
    library: str = "game-wrapper"
    log_dir: str = "scgms_logs"
    model_params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if int(self.days) != self.days or self.days < 1:
            raise ValueError(f"Simulated days must be an integer >= 1, got {self.days!r}")
        self.days = int(self.days)


@dataclass
class ObjectiveWeights:
    """Relative weight of each sub-metric in the objective."""
    hypo: float = 1.0
    hyper: float = 0.8
    dose: float = 0.3
    amplitude: float = 0.5

    def __post_init__(self):
        values = [self.hypo, self.hyper, self.dose, self.amplitude]
        if any(w < 0 for w in values):
            raise ValueError(f"Objective weights must be non-negative, got {values}")
        if sum(values) <= 0:
            raise ValueError("At least one objective weight must be positive")

    @property
    def total(self) -> float:
        return self.hypo + self.hyper + self.dose + self.amplitude


@dataclass
class ObjectiveSettings:
    """Thresholds (mmol/l) and weights of the objective function."""
    hypo_threshold: float = 4.0
    hyper_threshold: float = 10.0
    amplitude_saturation: float = 6.0
    warmup_weight: float = 0.0
    weights: ObjectiveWeights = field(default_factory=ObjectiveWeights)

    def __post_init__(self):
        if isinstance(self.weights, dict):
            self.weights = ObjectiveWeights(**_pick(self.weights, ObjectiveWeights()))
        if self.hypo_threshold >= self.hyper_threshold:
            raise ValueError("The hypoglycemia threshold must be below the hyperglycemia threshold")
        if self.amplitude_saturation <= 0:
            raise ValueError("Amplitude saturation must be positive")
        if self.warmup_weight < 0:
            raise ValueError("Warm-up weight must be non-negative")


@dataclass
class GridSettings:
    """Inclusive integer range enumerated by the grid search; None falls back to the dosage bounds."""
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    chunk_size: int = 256


@dataclass
class LocalSearchSettings:
    steps: int = 200
    max_delta: int = 2
    seed: Optional[int] = None


@dataclass
class EvolutionarySettings:
    min_population: int = 50
    max_population: int = 100
    stagnation_generations: int = 100
    max_generations: int = 1000
    elite_fraction: float = 0.2
    mutation_rate: float = 0.1
    mutation_scale: float = 4.0
    decimals: int = 0
    seed: Optional[int] = None

    def __post_init__(self):
        if self.min_population < 2 or self.max_population < self.min_population:
            raise ValueError(
                f"Invalid population sizes: min={self.min_population}, max={self.max_population}"
            )
        if not 0.0 < self.elite_fraction < 1.0:
            raise ValueError("Elite fraction must be in (0, 1)")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ValueError("Mutation rate must be in [0, 1]")


@dataclass
class ParallelismSettings:
    min_workers: int = 1
    max_workers: Optional[int] = None

    def __post_init__(self):
        if self.min_workers < 1:
            raise ValueError("At least one worker is required")
        if self.max_workers is not None and self.max_workers < self.min_workers:
            raise ValueError("max_workers must not be below min_workers")


@dataclass
class TunerSettings:
    """All recognised options, grouped by configuration section.

    Example YAML:

        dosage: {min_amount: 0, max_amount: 40}
        simulation: {days: 3, model: compartment}
        objective:
          weights: {hypo: 1.0, hyper: 0.8, dose: 0.3, amplitude: 0.5}
        search:
          local: {steps: 500, seed: 7}
          parallelism: {max_workers: 8}
    """
    dosage: DosageSettings = field(default_factory=DosageSettings)
    simulation: SimulationSettings = field(default_factory=SimulationSettings)
    objective: ObjectiveSettings = field(default_factory=ObjectiveSettings)
    grid: GridSettings = field(default_factory=GridSettings)
    local: LocalSearchSettings = field(default_factory=LocalSearchSettings)
    evolutionary: EvolutionarySettings = field(default_factory=EvolutionarySettings)
    parallelism: ParallelismSettings = field(default_factory=ParallelismSettings)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "TunerSettings":
        """Builds settings from a loaded configuration dict; unknown keys are ignored."""
        def section(path: str) -> Dict[str, Any]:
            value = get_config_value(config, path, {})
            return value if isinstance(value, dict) else {}

        return cls(
            dosage=DosageSettings(**_pick(section("dosage"), DosageSettings())),
            simulation=SimulationSettings(**_pick(section("simulation"), SimulationSettings())),
            objective=ObjectiveSettings(**_pick(section("objective"), ObjectiveSettings())),
            grid=GridSettings(**_pick(section("search.grid"), GridSettings())),
            local=LocalSearchSettings(**_pick(section("search.local"), LocalSearchSettings())),
            evolutionary=EvolutionarySettings(
                **_pick(section("search.evolutionary"), EvolutionarySettings())
            ),
            parallelism=ParallelismSettings(
                **_pick(section("search.parallelism"), ParallelismSettings())
            ),
        )

    @classmethod
    def from_file(cls, config_path: Optional[str] = None) -> "TunerSettings":
        return cls.from_config(load_config(config_path))

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to a dictionary laid out like a config file."""
        return {
            "dosage": asdict(self.dosage),
            "simulation": asdict(self.simulation),
            "objective": asdict(self.objective),
            "search": {
                "grid": asdict(self.grid),
                "local": asdict(self.local),
                "evolutionary": asdict(self.evolutionary),
                "parallelism": asdict(self.parallelism),
            },
        }
