"""Shared pytest fixtures for labelmia tests.

The toy oracles here answer in microseconds on CPU, so full attacks run
in well under a second, with no datasets, checkpoints or GPU required.
"""

from __future__ import annotations

import zlib
from typing import Sequence

import numpy as np
import pytest

from labelmia.attacks.oracle import Model, OracleError
from labelmia.config import HSJAConfig
from labelmia.data import Sample
from labelmia.mathutils import NoiseGenerator


# ── Toy oracles ──────────────────────────────────────────────────────────

class FirstCoordinateModel(Model):
    """Label 1 when ``x[0] > 0.5``, else 0. Counts raw calls."""

    def __init__(self, size: int = 3) -> None:
        self.size = size
        self.calls = 0
        self.batch_calls = 0

    def predict(self, vector: np.ndarray) -> int:
        self.calls += 1
        return int(vector[0] > 0.5)

    def predict_batch(self, vectors: Sequence[np.ndarray]) -> list[int]:
        self.batch_calls += 1
        self.calls += len(vectors)
        return [int(v[0] > 0.5) for v in vectors]

    def input_size(self) -> int:
        return self.size


class ConstantModel(Model):
    """Always answers *label*."""

    def __init__(self, label: int, size: int = 3) -> None:
        self.label = label
        self.size = size

    def predict(self, vector: np.ndarray) -> int:
        return self.label

    def input_size(self) -> int:
        return self.size


class FailingModel(FirstCoordinateModel):
    """Behaves like ``FirstCoordinateModel`` but fails from call *fail_from* onward."""

    def __init__(self, fail_from: int, size: int = 3) -> None:
        super().__init__(size)
        self.fail_from = fail_from

    def predict(self, vector: np.ndarray) -> int:
        self.calls += 1
        if self.calls >= self.fail_from:
            raise OracleError("connection reset by peer")
        return int(vector[0] > 0.5)

    def predict_batch(self, vectors: Sequence[np.ndarray]) -> list[int]:
        return [self.predict(v) for v in vectors]


class FlakyModel(FirstCoordinateModel):
    """Fails on roughly one input in *period*, chosen by a checksum of the input.

    The same vector always fails, whether it is sent alone or in a batch,
    and a batch fails as a whole if any of its vectors does.
    """

    def __init__(self, period: int = 37, size: int = 3) -> None:
        super().__init__(size)
        self.period = period
        self.failures = 0

    def _fails(self, vector: np.ndarray) -> bool:
        return zlib.crc32(np.asarray(vector, dtype=np.float32).tobytes()) % self.period == 0

    def predict(self, vector: np.ndarray) -> int:
        self.calls += 1
        if self._fails(vector):
            self.failures += 1
            raise OracleError("HTTP 503 from scoring endpoint")
        return int(vector[0] > 0.5)

    def predict_batch(self, vectors: Sequence[np.ndarray]) -> list[int]:
        self.batch_calls += 1
        self.calls += len(vectors)
        if any(self._fails(v) for v in vectors):
            raise OracleError("HTTP 503 from scoring endpoint")
        return [int(v[0] > 0.5) for v in vectors]


# ── Fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture()
def toy_model() -> FirstCoordinateModel:
    return FirstCoordinateModel()


@pytest.fixture()
def origin_sample() -> Sample:
    """``[0, 0, 0]`` labelled 0, which the toy model agrees with."""
    return Sample(sample_id=7, data=np.zeros(3, dtype=np.float32), label=0, filename="toy")


@pytest.fixture()
def hsja_config() -> HSJAConfig:
    return HSJAConfig(max_queries=10000, max_iterations=50, num_evals=100, init_evals=100)


@pytest.fixture()
def noise() -> NoiseGenerator:
    return NoiseGenerator(seed=1234)
