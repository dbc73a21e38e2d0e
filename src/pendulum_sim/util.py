# MIT License (see LICENSE)
"""
Small numeric helpers: array conversion, domain clamping and
environment-driven configuration.
"""
from __future__ import annotations
import logging
import os

import numpy as np

from .constants import DEFAULT_TICK_SECONDS

logger = logging.getLogger(__name__)


def f64(x) -> np.ndarray:
    """Convert any array-like to a float64 numpy array."""
    return np.array(x, dtype=np.float64)


def clamp(value: float, lo: float, hi: float = float("inf")) -> float:
    """
    Clamp value into the inclusive range [lo, hi].

    NaN is mapped to lo so that a bad input can never poison solver state.
    """
    value = float(value)
    if value != value:
        return lo
    return max(lo, min(hi, value))


def clamp_int(value: float, lo: int, hi: int) -> int:
    """Round to the nearest integer, then clamp into [lo, hi]."""
    value = float(value)
    if value != value:
        return lo
    if value == float("inf"):
        return hi
    if value == float("-inf"):
        return lo
    return max(lo, min(hi, int(round(value))))


def tick_seconds() -> float:
    """
    Default external tick period in seconds.

    Reads PENDULUM_SIM_TICK_SECONDS; falls back to 0.05 (20 Hz) when the
    variable is unset or not a positive number.
    """
    raw = os.environ.get("PENDULUM_SIM_TICK_SECONDS")
    if not raw:
        return DEFAULT_TICK_SECONDS
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Ignoring PENDULUM_SIM_TICK_SECONDS=%r (not a number)", raw)
        return DEFAULT_TICK_SECONDS
    if not value > 0:
        logger.warning("Ignoring PENDULUM_SIM_TICK_SECONDS=%r (must be positive)", raw)
        return DEFAULT_TICK_SECONDS
    return value
