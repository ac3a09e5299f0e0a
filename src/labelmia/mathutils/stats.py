"""Statistical helpers: arg-max, batch mean, stable softmax."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from labelmia.mathutils.vectors import DTYPE


def arg_max(values) -> Optional[int]:
    """Index of the first maximum of *values*, or ``None`` if empty.

    ``[0.1, 0.8, 0.1]`` → ``1``.
    """
    arr = np.asarray(values)
    if arr.size == 0:
        return None
    return int(np.argmax(arr))


def mean_vector(vectors: Sequence[np.ndarray]) -> Optional[np.ndarray]:
    """Elementwise mean of a batch of equal-length vectors.

    Accumulates in float64 and casts the result back to float32.
    Returns ``None`` for an empty batch.

    Raises
    ------
    ValueError
        If the vectors do not all have the same length.
    """
    if len(vectors) == 0:
        return None

    cols = len(vectors[0])
    total = np.zeros(cols, dtype=np.float64)
    for vec in vectors:
        if len(vec) != cols:
            raise ValueError(
                f"mean_vector: inconsistent vector lengths ({len(vec)} != {cols})"
            )
        total += np.asarray(vec, dtype=np.float64)

    return (total / len(vectors)).astype(DTYPE)


def softmax(logits) -> np.ndarray:
    """Convert raw scores to probabilities.

    The max logit is subtracted before exponentiating, so
    ``softmax([1000, 1000])`` is ``[0.5, 0.5]`` rather than ``nan``.
    """
    z = np.asarray(logits, dtype=np.float64).ravel()
    if z.size == 0:
        return np.array([], dtype=DTYPE)
    exps = np.exp(z - z.max())
    return (exps / exps.sum()).astype(DTYPE)
