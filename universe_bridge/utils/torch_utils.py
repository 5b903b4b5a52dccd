"""PyTorch ergonomics: seeding and device resolution.

Provides:
    - seed_everything(): Reproducible sampling (torch, numpy, Python RNG)
    - resolve_device(): Turn "auto"/"cpu"/"cuda:N" into a torch.device

Reproducibility:
    Action sampling draws from torch's global generator, so seeding it
    once per worker makes rollouts replayable.
"""

import os
import random
from typing import Union

import numpy as np
import torch


def seed_everything(seed: int, deterministic: bool = False) -> None:
    """Seed Python, numpy and torch RNGs.

    Parameters
    ----------
    seed : int
        Seed value
    deterministic : bool
        Also request deterministic torch kernels, default False

    Examples
    --------
    >>> seed_everything(123)
    >>> a = torch.rand(3)
    >>> seed_everything(123)
    >>> torch.equal(a, torch.rand(3))
    True
    """
    os.environ["PYTHONHASHSEED"] = str(seed)
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)
    if deterministic:
        torch.use_deterministic_algorithms(True)


def resolve_device(device: Union[str, torch.device, None] = "cpu") -> torch.device:
    """Resolve a device spec.

    Parameters
    ----------
    device : str | torch.device | None
        "auto" picks CUDA when available; None means CPU

    Returns
    -------
    torch.device
    """
    if device is None:
        return torch.device("cpu")
    if isinstance(device, torch.device):
        return device
    if device == "auto":
        return torch.device("cuda" if torch.cuda.is_available() else "cpu")
    return torch.device(device)
