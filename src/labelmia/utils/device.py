"""Device selection for the torch-backed oracle."""

from __future__ import annotations

import logging

import torch

logger = logging.getLogger(__name__)


def get_device(preference: str = "auto") -> torch.device:
    """Return the ``torch.device`` the target model should run on.

    ``"auto"`` picks CUDA > MPS > CPU; ``"cuda"``, ``"mps"`` or ``"cpu"``
    force a backend, falling back to CPU with a warning if it is missing.
    """
    if preference == "auto":
        if torch.cuda.is_available():
            return torch.device("cuda")
        if hasattr(torch.backends, "mps") and torch.backends.mps.is_available():
            return torch.device("mps")
        return torch.device("cpu")

    if preference == "cuda" and not torch.cuda.is_available():
        logger.warning("CUDA requested but not available, falling back to CPU.")
        return torch.device("cpu")
    if preference == "mps" and not (
        hasattr(torch.backends, "mps") and torch.backends.mps.is_available()
    ):
        logger.warning("MPS requested but not available, falling back to CPU.")
        return torch.device("cpu")
    return torch.device(preference)
