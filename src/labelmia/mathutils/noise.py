"""Seedable Gaussian / uniform noise for the attack engine.

``NoiseGenerator`` wraps a ``numpy.random.Generator`` behind a lock so
one stream can be shared by concurrent attack workers.  The lock is held
only while the generator fills a single output vector; the float32 cast
and everything the caller does afterwards (including oracle queries)
happen outside it.

The runner prefers independent per-sample streams obtained with
``spawn()``, which never contend.  The module-level functions operate on
a process-wide default generator that is lazily seeded from the clock
unless ``set_seed`` is called first.
"""

from __future__ import annotations

import threading
import time

import numpy as np

from labelmia.mathutils.vectors import DTYPE


class NoiseGenerator:
    """Thread-safe random vector source.

    Parameters
    ----------
    seed:
        Integer seed for a reproducible stream. ``None`` seeds from
        ``time.time_ns()``.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._lock = threading.Lock()
        self._seed_seq = np.random.SeedSequence(_resolve_seed(seed))
        self._rng = np.random.default_rng(self._seed_seq)

    def seed(self, seed: int) -> None:
        """Reset the stream; later draws are reproducible from *seed*."""
        with self._lock:
            self._seed_seq = np.random.SeedSequence(seed)
            self._rng = np.random.default_rng(self._seed_seq)

    def gaussian(self, size: int, mean: float = 0.0, std: float = 1.0) -> np.ndarray:
        """Draw *size* i.i.d. samples from ``N(mean, std**2)``."""
        with self._lock:
            values = self._rng.normal(mean, std, size)
        return values.astype(DTYPE)

    def uniform(self, size: int, low: float = 0.0, high: float = 1.0) -> np.ndarray:
        """Draw *size* i.i.d. samples from ``U[low, high)``."""
        with self._lock:
            values = self._rng.uniform(low, high, size)
        return values.astype(DTYPE)

    def spawn(self, n: int) -> list[NoiseGenerator]:
        """Derive *n* independent child generators.

        Children depend only on this generator's seed and how many
        children were spawned before, never on draws already taken.
        """
        with self._lock:
            children = self._seed_seq.spawn(n)
        return [NoiseGenerator._from_seed_sequence(s) for s in children]

    @classmethod
    def _from_seed_sequence(cls, seed_seq: np.random.SeedSequence) -> NoiseGenerator:
        gen = cls.__new__(cls)
        gen._lock = threading.Lock()
        gen._seed_seq = seed_seq
        gen._rng = np.random.default_rng(seed_seq)
        return gen


def _resolve_seed(seed: int | None) -> int:
    return time.time_ns() if seed is None else seed


# ── Process-wide default stream ──────────────────────────────────────────

_default: NoiseGenerator | None = None
_default_lock = threading.Lock()


def default_generator() -> NoiseGenerator:
    """Return the shared generator, creating it on first use."""
    global _default
    with _default_lock:
        if _default is None:
            _default = NoiseGenerator()
        return _default


def set_seed(seed: int) -> None:
    """Reseed the shared generator.

    Must not be called while attacks are drawing from it.
    """
    default_generator().seed(seed)


def gen_gaussian(size: int, mean: float = 0.0, std: float = 1.0) -> np.ndarray:
    return default_generator().gaussian(size, mean, std)


def gen_uniform(size: int, low: float = 0.0, high: float = 1.0) -> np.ndarray:
    return default_generator().uniform(size, low, high)
