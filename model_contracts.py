"""
Contract checks shared by the network builder and receptors.

Kept out of the per-slot hot loops; they run at construction time or once per
tick, never per receiver.
"""
from __future__ import annotations

import numpy as np


def assert_finite(arr, name: str = "array"):
    if not np.all(np.isfinite(np.asarray(arr, dtype=np.float64))):
        raise ValueError(f"{name} contains non-finite values: {arr}")


def assert_range(x, lo: float, hi: float, name: str = "value"):
    if not lo <= x <= hi:
        raise ValueError(f"{name} out of range [{lo}, {hi}]: {x}")


def assert_positions(positions, name: str = "positions"):
    """Positions must be an (N, 2) array of finite coordinates."""
    arr = np.asarray(positions, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"{name} has shape {arr.shape}, expected (N, 2)")
    assert_finite(arr, name)
