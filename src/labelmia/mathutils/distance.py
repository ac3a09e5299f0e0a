"""Distance metrics and geometry on image vectors.

Vectors are stored as float32 but every reduction here accumulates in
float64: summing thousands of squared float32 differences otherwise
biases the reported L2 distance, which is the membership-inference
signal.
"""

from __future__ import annotations

import numpy as np

from labelmia.mathutils.vectors import DTYPE, as_vector, check_same_length

# Norms below this are treated as zero when normalising.
NORM_EPS = 1e-12


def l2_distance(a, b) -> float:
    """Euclidean distance between *a* and *b*."""
    a, b = as_vector(a), as_vector(b)
    check_same_length(a, b, "l2_distance")
    diff = a.astype(np.float64) - b.astype(np.float64)
    return float(np.sqrt(np.dot(diff, diff)))


def l2_norm(v) -> float:
    v = as_vector(v).astype(np.float64)
    return float(np.sqrt(np.dot(v, v)))


def linf_distance(a, b) -> float:
    """Largest absolute elementwise difference."""
    a, b = as_vector(a), as_vector(b)
    check_same_length(a, b, "linf_distance")
    if len(a) == 0:
        return 0.0
    return float(np.max(np.abs(a.astype(np.float64) - b.astype(np.float64))))


def l0_distance(a, b, atol: float = 0.0) -> int:
    """Number of positions where *a* and *b* differ by more than *atol*.

    The default ``atol=0.0`` is exact float comparison, so differences
    introduced purely by clipping or interpolation round-off are counted.
    Pass a small tolerance (e.g. ``1e-6``) to ignore them.
    """
    a, b = as_vector(a), as_vector(b)
    check_same_length(a, b, "l0_distance")
    if atol <= 0.0:
        return int(np.count_nonzero(a != b))
    diff = np.abs(a.astype(np.float64) - b.astype(np.float64))
    return int(np.count_nonzero(diff > atol))


def interpolate(a, b, t: float) -> np.ndarray:
    """Return ``a + (b - a) * t``, computed in float64.

    *t* is not restricted to ``[0, 1]``; the boundary search clamps it
    itself.  For float32 inputs ``t=0`` gives exactly *a* and ``t=1``
    exactly *b*.
    """
    a, b = as_vector(a), as_vector(b)
    check_same_length(a, b, "interpolate")
    a64 = a.astype(np.float64)
    return (a64 + (b.astype(np.float64) - a64) * t).astype(DTYPE)


def normalize(v) -> np.ndarray:
    """Unit vector in the direction of *v*, or the zero vector if ``|v| < 1e-12``."""
    v = as_vector(v)
    norm = l2_norm(v)
    if norm < NORM_EPS:
        return np.zeros(len(v), dtype=DTYPE)
    return v * DTYPE(1.0 / norm)


def project_to_sphere(v, radius: float) -> np.ndarray:
    """Project *v* onto the L2 ball of *radius*.

    Vectors already inside the ball are returned as a copy; longer ones
    are rescaled so their norm equals *radius*, up to float32 rounding,
    and never exceeds it.
    """
    if radius < 0:
        raise ValueError(f"radius must be >= 0, got {radius}")
    v = as_vector(v)
    norm = l2_norm(v)
    if norm <= radius:
        return v.copy()
    out = (v.astype(np.float64) * (radius / norm)).astype(DTYPE)
    # Rounding to float32 can land just outside the ball.
    while l2_norm(out) > radius:
        out = np.nextafter(out, DTYPE(0))
    return out


def cosine_similarity(a, b) -> float:
    """Cosine of the angle between *a* and *b*; 0 if either is a zero vector."""
    a, b = as_vector(a), as_vector(b)
    check_same_length(a, b, "cosine_similarity")
    a64 = a.astype(np.float64)
    b64 = b.astype(np.float64)
    norm_a_sq = float(np.dot(a64, a64))
    norm_b_sq = float(np.dot(b64, b64))
    if norm_a_sq == 0.0 or norm_b_sq == 0.0:
        return 0.0
    return float(np.dot(a64, b64) / (np.sqrt(norm_a_sq) * np.sqrt(norm_b_sq)))
