"""Reproducibility utilities for labelmia.

Call ``set_seed`` once before attacking to make the random
initialisation and gradient directions repeatable across runs.
"""

from __future__ import annotations

import os
import random

import numpy as np
import torch

from labelmia.mathutils import noise


def set_seed(seed: int = 42) -> None:
    """Seed Python, NumPy, PyTorch and the shared noise generator.

    Parameters
    ----------
    seed:
        Integer seed value.
    """
    random.seed(seed)
    np.random.seed(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)
    # Deterministic kernels keep oracle labels stable between runs
    torch.backends.cudnn.deterministic = True
    torch.backends.cudnn.benchmark = False
    os.environ["PYTHONHASHSEED"] = str(seed)
    noise.set_seed(seed)
