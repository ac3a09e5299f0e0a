"""The ``Sample`` record handed to the attack engine."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from labelmia.mathutils.vectors import as_vector


@dataclass(frozen=True)
class Sample:
    """One labelled input, flattened channel-major.

    Attributes
    ----------
    sample_id:
        Position of the sample in its source.
    data:
        1-D float32 vector of length ``C*H*W`` (all of channel 0, then
        channel 1, ...). Stored read-only.
    label:
        Ground-truth class index.
    filename:
        Originating file, for debugging only.
    """

    sample_id: int
    data: np.ndarray
    label: int
    filename: str = ""

    def __post_init__(self) -> None:
        data = np.array(as_vector(self.data), copy=True)
        data.flags.writeable = False
        object.__setattr__(self, "data", data)

    def __len__(self) -> int:
        return len(self.data)
