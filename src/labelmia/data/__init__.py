"""labelmia sample loading."""

from labelmia.data.datasets import (
    DATASET_INFO,
    DatasetInfo,
    load_binary_samples,
    load_torchvision_samples,
    write_binary_samples,
)
from labelmia.data.samples import Sample

__all__ = [
    "DATASET_INFO",
    "DatasetInfo",
    "Sample",
    "load_binary_samples",
    "load_torchvision_samples",
    "write_binary_samples",
]
