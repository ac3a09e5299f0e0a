"""Fixed-length float32 vector arithmetic.

Every function allocates and returns a new array, so calls from
independent attack workers never share output buffers.  Binary
operations require equal lengths; a mismatch is a programming error and
raises ``ValueError`` instead of broadcasting.
"""

from __future__ import annotations

import numpy as np

DTYPE = np.float32


def as_vector(v) -> np.ndarray:
    """Return *v* as a 1-D float32 array (no copy if already one)."""
    arr = np.asarray(v, dtype=DTYPE)
    if arr.ndim != 1:
        raise ValueError(f"Expected a 1-D vector, got shape {arr.shape}")
    return arr


def check_same_length(a: np.ndarray, b: np.ndarray, op: str) -> None:
    """Raise ``ValueError`` unless *a* and *b* have the same length."""
    if len(a) != len(b):
        raise ValueError(
            f"{op}: vectors must have the same length ({len(a)} != {len(b)})"
        )


def new_vector(size: int, value: float = 0.0) -> np.ndarray:
    """Vector of *size* copies of *value*."""
    return np.full(size, value, dtype=DTYPE)


def vector_add(a, b) -> np.ndarray:
    a, b = as_vector(a), as_vector(b)
    check_same_length(a, b, "vector_add")
    return a + b


def vector_sub(a, b) -> np.ndarray:
    a, b = as_vector(a), as_vector(b)
    check_same_length(a, b, "vector_sub")
    return a - b


def vector_mul(a, b) -> np.ndarray:
    """Elementwise (Hadamard) product."""
    a, b = as_vector(a), as_vector(b)
    check_same_length(a, b, "vector_mul")
    return a * b


def vector_scale(v, s: float) -> np.ndarray:
    return as_vector(v) * DTYPE(s)


def clip(v, lo: float, hi: float) -> np.ndarray:
    """Clamp every element into ``[lo, hi]``."""
    return np.clip(as_vector(v), DTYPE(lo), DTYPE(hi))


def clone(v) -> np.ndarray:
    """Independent deep copy of *v*."""
    return np.array(v, dtype=DTYPE, copy=True)
