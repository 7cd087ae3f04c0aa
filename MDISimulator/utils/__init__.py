"""Utility module for the MDISimulator library.

Key Contents:
    - `metrics.py`: Glycemic metrics (time below/above range, amplitude,
      dose load) used by the objective function.
    - `config.py`: Loading YAML/JSON configuration files and converting
      them into typed `TunerSettings`.
    - `trace_io.py`: Exporting simulation traces to pandas and CSV.
"""

from .config import ConfigManager, TunerSettings, get_config_value, load_config
from .trace_io import trace_to_dataframe, write_trace_csv

__all__ = [
    "ConfigManager",
    "TunerSettings",
    "get_config_value",
    "load_config",
    "trace_to_dataframe",
    "write_trace_csv",
]
