"""Numerics shared by the encoders: rounding, finiteness checks, padding splits.

Core utilities:
    - round_half_away(): scalar rounding used for pixel geometry
    - split_padding(): leading/trailing split of a padding amount
    - assert_finite(): fail-fast guard for sampled action vectors

Invariants:
    - Geometry rounding sends ties away from zero (0.5 → 1, -0.5 → -1), never banker's rounding
    - Padding splits put the odd leftover unit on the trailing edge
    - Non-finite tensors are rejected, never silently repaired
"""

import math
from typing import Tuple

import torch


def round_half_away(x: float) -> int:
    """Round a scalar to the nearest integer, ties away from zero.

    Parameters
    ----------
    x : float
        Value to round

    Returns
    -------
    int
        Nearest integer; 2.5 → 3, -2.5 → -3

    Notes
    -----
    Python's round() uses banker's rounding (2.5 → 2), which would shift
    pixel coordinates and resize targets by one unit on exact ties.
    """
    if x < 0:
        return -int(math.floor(-x + 0.5))
    return int(math.floor(x + 0.5))


def split_padding(pad: int) -> Tuple[int, int]:
    """Split a padding amount into (leading, trailing).

    Parameters
    ----------
    pad : int
        Total padding, must be >= 0

    Returns
    -------
    Tuple[int, int]
        (pad // 2, pad - pad // 2)

    Raises
    ------
    ValueError
        If pad is negative
    """
    if pad < 0:
        raise ValueError(f"Padding must be non-negative, got {pad}")
    leading = pad // 2
    return leading, pad - leading


def assert_finite(x: torch.Tensor, name: str = "tensor") -> None:
    """Assert tensor contains no NaN or Inf values.

    Parameters
    ----------
    x : torch.Tensor
        Tensor to check
    name : str
        Tensor name for error message

    Raises
    ------
    ValueError
        If tensor contains NaN or Inf
    """
    if not torch.isfinite(x).all():
        nan_count = torch.isnan(x).sum().item()
        inf_count = torch.isinf(x).sum().item()
        raise ValueError(
            f"{name} contains non-finite values: {nan_count} NaNs, {inf_count} Infs. "
            f"Shape: {tuple(x.shape)}, dtype: {x.dtype}"
        )
