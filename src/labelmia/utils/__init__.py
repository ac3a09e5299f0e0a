"""labelmia shared utilities."""

from labelmia.utils.device import get_device
from labelmia.utils.experiment import ExperimentLogger
from labelmia.utils.logging import setup_logging
from labelmia.utils.reproducibility import set_seed

__all__ = [
    "ExperimentLogger",
    "get_device",
    "set_seed",
    "setup_logging",
]
