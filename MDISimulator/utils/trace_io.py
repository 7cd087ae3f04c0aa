# MDISimulator Trace Export
# Converts simulation output into tabular form for inspection or plotting
# by other tools.

import os
from typing import Union

import pandas as pd

from ..core.data_types import MINUTES_PER_HOUR, OutputTrace

TRACE_COLUMNS = [
    "Minute",
    "TimeOfDay",
    "BloodGlucose",
    "CarbohydratesOnBoard",
    "InsulinOnBoard",
    "InterstitialGlucose",
]


def format_time_of_day(minute_of_day: int) -> str:
    """Formats a minute after midnight as `HH:MM`."""
    hours, minutes = divmod(int(minute_of_day), MINUTES_PER_HOUR)
    return f"{hours:02d}:{minutes:02d}"


def trace_to_dataframe(trace: OutputTrace) -> pd.DataFrame:
    """Converts a trace into a DataFrame with one row per simulated minute."""
    rows = [
        {
            "Minute": s.absolute_minute,
            "TimeOfDay": format_time_of_day(s.minute_of_day),
            "BloodGlucose": s.blood_glucose,
            "CarbohydratesOnBoard": s.carbs_on_board,
            "InsulinOnBoard": s.insulin_on_board,
            "InterstitialGlucose": s.interstitial_glucose,
        }
        for s in trace
    ]
    return pd.DataFrame(rows, columns=TRACE_COLUMNS)


def write_trace_csv(trace: OutputTrace, path: Union[str, os.PathLike]) -> str:
    """Writes a trace to a CSV file and returns the path written."""
    path = os.fspath(path)
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    trace_to_dataframe(trace).to_csv(path, index=False)
    return path
