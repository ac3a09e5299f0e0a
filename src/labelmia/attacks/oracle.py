"""Label-only oracle interfaces.

The attack engine only ever sees the top-1 label of an input.  ``Model``
is the contract a target must satisfy; ``QueryCounter`` decorates a
``Model`` with the per-attack query budget and the oracle-error policy,
so budget logic can be tested without a real classifier.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Sequence

import numpy as np
import torch
import torch.nn as nn
import torch.nn.functional as F

from labelmia.config.schema import OracleErrorPolicy
from labelmia.mathutils.stats import arg_max, softmax

logger = logging.getLogger(__name__)


class OracleError(RuntimeError):
    """The oracle could not answer a query (transport or serving failure)."""


class QueryBudgetExhausted(Exception):
    """Raised by ``QueryCounter`` instead of issuing a query past the budget."""


class Model(ABC):
    """A black-box classifier that answers with labels only."""

    @abstractmethod
    def predict(self, vector: np.ndarray) -> int:
        """Top-1 label for one flattened input.

        Raises
        ------
        OracleError
            If the prediction could not be obtained.
        """
        ...

    def predict_batch(self, vectors: Sequence[np.ndarray]) -> list[int]:
        """Labels for several inputs. Override for a single round trip."""
        return [self.predict(v) for v in vectors]

    @abstractmethod
    def input_size(self) -> int:
        """Length of the flattened vectors this model accepts."""
        ...


class QueryCounter(Model):
    """Counts queries against a budget and applies the oracle-error policy.

    Parameters
    ----------
    model:
        The wrapped oracle.
    max_queries:
        Hard budget. A query that would exceed it is never sent;
        ``QueryBudgetExhausted`` is raised instead.
    on_error:
        ``ABORT`` re-raises ``OracleError``; ``NON_ADVERSARIAL`` answers
        with *fallback_label* (the query still counts).
    fallback_label:
        Label reported for failed queries under ``NON_ADVERSARIAL``,
        normally the attacked sample's own label.
    """

    def __init__(
        self,
        model: Model,
        max_queries: int,
        on_error: OracleErrorPolicy = OracleErrorPolicy.ABORT,
        fallback_label: int | None = None,
    ) -> None:
        if on_error is OracleErrorPolicy.NON_ADVERSARIAL and fallback_label is None:
            raise ValueError("fallback_label is required for the non_adversarial policy")
        self.model = model
        self.max_queries = max_queries
        self.on_error = on_error
        self.fallback_label = fallback_label
        self.queries = 0
        self.errors = 0

    @property
    def remaining(self) -> int:
        return max(0, self.max_queries - self.queries)

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0

    def input_size(self) -> int:
        return self.model.input_size()

    def predict(self, vector: np.ndarray) -> int:
        if self.exhausted:
            raise QueryBudgetExhausted(f"query budget of {self.max_queries} spent")
        self.queries += 1
        return self._predict_one(vector)

    def predict_batch(self, vectors: Sequence[np.ndarray]) -> list[int]:
        """Predict as many of *vectors* as the budget allows.

        If the budget cannot cover the whole batch, the affordable prefix
        is still sent and counted, then ``QueryBudgetExhausted`` is
        raised, which is exactly what one-at-a-time prediction does.

        Under ``NON_ADVERSARIAL`` a failed batch is re-sent one vector at
        a time, so only the vectors that fail again get the fallback
        label.  The re-sent vectors are not counted a second time.
        """
        if self.exhausted:
            raise QueryBudgetExhausted(f"query budget of {self.max_queries} spent")
        batch = list(vectors[: self.remaining])
        self.queries += len(batch)
        try:
            labels = [int(label) for label in self.model.predict_batch(batch)]
            if len(labels) != len(batch):
                raise OracleError(f"oracle returned {len(labels)} labels for {len(batch)} inputs")
        except OracleError as exc:
            if self.on_error is OracleErrorPolicy.ABORT:
                self._handle_error(exc)
            logger.debug("Batch of %d failed (%s), re-sending one at a time", len(batch), exc)
            labels = [self._predict_one(v) for v in batch]

        if len(batch) < len(vectors):
            raise QueryBudgetExhausted(f"query budget of {self.max_queries} spent")
        return labels

    def _predict_one(self, vector: np.ndarray) -> int:
        try:
            return int(self.model.predict(vector))
        except OracleError as exc:
            return self._handle_error(exc)

    def _handle_error(self, exc: OracleError) -> int:
        self.errors += 1
        if self.on_error is OracleErrorPolicy.ABORT:
            raise exc
        logger.warning("Oracle error treated as non-adversarial: %s", exc)
        return self.fallback_label


# ---------------------------------------------------------------------------
# Concrete oracles
# ---------------------------------------------------------------------------

class TorchOracle(Model):
    """Serve a PyTorch classifier as a label-only oracle.

    Parameters
    ----------
    module:
        Any ``nn.Module`` (including a loaded TorchScript module) mapping
        ``(N, *input_shape)`` to ``(N, num_classes)`` logits.
    input_shape:
        Shape of one un-flattened input, e.g. ``(3, 32, 32)``.
    device:
        Torch device the module runs on.
    """

    def __init__(
        self,
        module: nn.Module,
        input_shape: Sequence[int],
        device: torch.device | str = "cpu",
    ) -> None:
        self.device = torch.device(device)
        self.module = module.to(self.device)
        self.module.eval()  # always eval mode for attacks
        self.input_shape = tuple(input_shape)
        self._input_size = int(np.prod(self.input_shape))

    def input_size(self) -> int:
        return self._input_size

    def predict(self, vector: np.ndarray) -> int:
        return self.predict_batch([vector])[0]

    @torch.no_grad()
    def predict_batch(self, vectors: Sequence[np.ndarray]) -> list[int]:
        batch = np.stack([np.asarray(v, dtype=np.float32) for v in vectors])
        inputs = torch.from_numpy(batch).view(-1, *self.input_shape).to(self.device)
        try:
            logits = self.module(inputs)
        except RuntimeError as exc:
            raise OracleError(f"model forward pass failed: {exc}") from exc
        probs = F.softmax(logits, dim=1)
        return probs.argmax(dim=1).cpu().tolist()


class ScoreOracle(Model):
    """Label-only view of a function that returns class scores.

    *score_fn* maps one flattened input to a logit vector (for example a
    remote scoring endpoint).  Only ``arg_max(softmax(logits))`` leaves
    this class.  Connection and runtime failures from *score_fn* are
    re-raised as ``OracleError``.
    """

    def __init__(self, score_fn: Callable[[np.ndarray], Sequence[float]], input_size: int) -> None:
        self.score_fn = score_fn
        self._input_size = input_size

    def input_size(self) -> int:
        return self._input_size

    def predict(self, vector: np.ndarray) -> int:
        try:
            logits = self.score_fn(vector)
        except (OSError, RuntimeError) as exc:
            raise OracleError(str(exc)) from exc
        label = arg_max(softmax(logits))
        if label is None:
            raise OracleError("score function returned no scores")
        return label
