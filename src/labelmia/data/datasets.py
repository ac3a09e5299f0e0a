"""Sample loading for labelmia.

Two sources produce ``Sample`` records:

- the CIFAR-10 *binary* format, one label byte followed by
  ``C*H*W`` pixel bytes per record, already channel-major, which is the
  layout the attack engine uses;
- any torchvision image dataset, flattened the same way.

Pixels are scaled to ``[0, 1]`` to match the default clip bounds.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
from torchvision import datasets as tv_datasets
from torchvision import transforms as T

from labelmia.data.samples import Sample

logger = logging.getLogger(__name__)


# ─── Dataset metadata ────────────────────────────────────────────────────

@dataclass(frozen=True)
class DatasetInfo:
    """Lightweight descriptor for a supported dataset."""

    name: str
    num_classes: int
    input_shape: tuple[int, ...]

    @property
    def input_size(self) -> int:
        return int(np.prod(self.input_shape))


DATASET_INFO: dict[str, DatasetInfo] = {
    "mnist": DatasetInfo("mnist", 10, (1, 28, 28)),
    "cifar10": DatasetInfo("cifar10", 10, (3, 32, 32)),
    "cifar100": DatasetInfo("cifar100", 100, (3, 32, 32)),
}

_TV_MAP = {
    "mnist": tv_datasets.MNIST,
    "cifar10": tv_datasets.CIFAR10,
    "cifar100": tv_datasets.CIFAR100,
}


# ─── Binary records ──────────────────────────────────────────────────────

def load_binary_samples(
    path: str | Path,
    limit: Optional[int] = None,
    offset: int = 0,
    shape: Sequence[int] = (3, 32, 32),
) -> list[Sample]:
    """Read samples from a CIFAR-10 style binary batch file.

    Parameters
    ----------
    path:
        The ``.bin`` file.
    limit:
        Maximum number of samples to return (``None`` = all remaining).
    offset:
        Number of records to skip first.
    shape:
        ``(channels, height, width)`` of one image.

    Returns
    -------
    list[Sample]
        ``sample_id`` is the record index within the file.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If the file size is not a whole number of records.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Sample file not found: {path}")

    image_size = int(np.prod(shape))
    record_size = image_size + 1
    raw = np.fromfile(path, dtype=np.uint8)
    if raw.size % record_size != 0:
        raise ValueError(
            f"{path} is {raw.size} bytes, not a multiple of the "
            f"{record_size}-byte record size"
        )

    records = raw.reshape(-1, record_size)
    stop = len(records) if limit is None else min(len(records), offset + limit)

    samples = [
        Sample(
            sample_id=i,
            data=records[i, 1:].astype(np.float32) / 255.0,
            label=int(records[i, 0]),
            filename=path.name,
        )
        for i in range(offset, stop)
    ]
    logger.info("Loaded %d samples from %s", len(samples), path)
    return samples


def write_binary_samples(samples: Sequence[Sample], path: str | Path) -> Path:
    """Write *samples* back in the binary record format (pixels quantised to bytes)."""
    path = Path(path)
    rows = [
        np.concatenate([
            np.array([s.label], dtype=np.uint8),
            np.clip(np.rint(s.data * 255.0), 0, 255).astype(np.uint8),
        ])
        for s in samples
    ]
    np.stack(rows).tofile(path)
    return path


# ─── torchvision ─────────────────────────────────────────────────────────

def load_torchvision_samples(
    name: str,
    train: bool = False,
    data_dir: str = "./data",
    download: bool = False,
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[Sample]:
    """Flatten a torchvision dataset into ``Sample`` records.

    Only ``ToTensor`` is applied, so pixels are in ``[0, 1]`` and the
    flattened tensor is channel-major.
    """
    if name not in _TV_MAP:
        raise ValueError(f"Unknown dataset {name!r}. Choose from: {sorted(_TV_MAP)}")

    dataset = _TV_MAP[name](
        root=data_dir, train=train, download=download, transform=T.ToTensor(),
    )
    stop = len(dataset) if limit is None else min(len(dataset), offset + limit)
    split = "train" if train else "test"

    samples = []
    for i in range(offset, stop):
        image, label = dataset[i]
        samples.append(Sample(
            sample_id=i,
            data=image.numpy().reshape(-1),
            label=int(label),
            filename=f"{name}/{split}/{i}",
        ))
    logger.info("Loaded %d %s samples from %s", len(samples), name, data_dir)
    return samples
