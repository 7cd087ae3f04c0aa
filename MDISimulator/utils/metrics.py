# MDISimulator Metrics
# Glycemic metrics used by the objective function and for reporting.
# Glucose values are in mmol/l.

import numpy as np
from typing import Sequence


# General helper for safe division
def _safe_divide(numerator: float, denominator: float,
                 default_val: float = 0.0) -> float:
    """Safely divides two numbers. Returns `default_val` if denominator is zero."""
    return numerator / denominator if denominator != 0 else default_val


def calculate_time_below_range(glucose: np.ndarray, threshold: float = 4.0) -> float:
    """Calculates the fraction of samples in hypoglycemia.

    Args:
        glucose (np.ndarray): Blood glucose values.
        threshold (float): Hypoglycemic threshold (exclusive, i.e.
            values < threshold count). Defaults to 4.0 mmol/l.

    Returns:
        float: Fraction in [0, 1]. Returns 0.0 if `glucose` is empty.
    """
    if len(glucose) == 0:
        return 0.0
    glucose = np.asarray(glucose, dtype=float)
    below_count = np.sum(glucose < threshold)
    return float(_safe_divide(float(below_count), float(len(glucose))))


def calculate_time_above_range(glucose: np.ndarray, threshold: float = 10.0) -> float:
    """Calculates the fraction of samples in hyperglycemia.

    Args:
        glucose (np.ndarray): Blood glucose values.
        threshold (float): Hyperglycemic threshold (inclusive, i.e.
            values >= threshold count). Defaults to 10.0 mmol/l.

    Returns:
        float: Fraction in [0, 1]. Returns 0.0 if `glucose` is empty.
    """
    if len(glucose) == 0:
        return 0.0
    glucose = np.asarray(glucose, dtype=float)
    above_count = np.sum(glucose >= threshold)
    return float(_safe_divide(float(above_count), float(len(glucose))))


def calculate_tir(glucose: np.ndarray, lower_bound: float = 4.0,
                  upper_bound: float = 10.0) -> float:
    """Calculates Time In Range as a fraction: `lower_bound <= g < upper_bound`."""
    if len(glucose) == 0:
        return 0.0
    glucose = np.asarray(glucose, dtype=float)
    in_range = np.sum((glucose >= lower_bound) & (glucose < upper_bound))
    return float(_safe_divide(float(in_range), float(len(glucose))))


def calculate_amplitude(glucose: np.ndarray) -> float:
    """Difference between the highest and lowest glucose value (0.0 if empty)."""
    if len(glucose) == 0:
        return 0.0
    glucose = np.asarray(glucose, dtype=float)
    return float(np.max(glucose) - np.min(glucose))


def normalize_amplitude(amplitude: float, saturation: float = 6.0) -> float:
    """Maps an amplitude onto [0, 1], saturating at `saturation`.

    An amplitude of 3-4 mmol/l is considered ideal, 6 or more poor.
    """
    if saturation <= 0:
        raise ValueError("Saturation must be positive.")
    return float(min(max(amplitude, 0.0), saturation) / saturation)


def calculate_dose_load(amounts: Sequence[float], max_amount: float) -> float:
    """Total administered insulin relative to the maximum possible total.

    Args:
        amounts (Sequence[float]): Every insulin amount of the day
            (basal and boluses).
        max_amount (float): Upper bound of a single amount.

    Returns:
        float: `sum(amounts) / (max_amount * len(amounts))`, clipped to
            [0, 1]. Returns 0.0 when the maximum total is zero.
    """
    amounts = np.asarray(amounts, dtype=float)
    load = _safe_divide(float(np.sum(amounts)), float(max_amount) * len(amounts))
    return float(np.clip(load, 0.0, 1.0))
