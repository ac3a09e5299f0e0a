"""HopSkipJump decision-based attack.

Estimates how far a sample sits from the model's decision boundary using
only top-1 labels.  Members of the training set tend to sit further
from the boundary than non-members, so the final L2 distance doubles as
a label-only membership-inference signal.

The attack alternates between:

1. **Boundary projection**: a fixed number of bisection steps on the
   segment between the original and an adversarial point.
2. **Gradient estimation**: Monte-Carlo sampling of unit Gaussian
   directions around the boundary point; each direction is signed by
   whether it crosses the boundary.
3. **Geometric stepping**: a step along the estimated direction whose
   size shrinks with ``sqrt(iteration)``, followed by re-projection.

A step is kept only if it brings the boundary point strictly closer to
the original.

References
----------
Chen, Jordan & Wainwright, "HopSkipJumpAttack: A Query-Efficient
Decision-Based Attack", IEEE S&P 2020.

Choquette-Choo et al., "Label-Only Membership Inference Attacks",
ICML 2021.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

import numpy as np

from labelmia.attacks.base import BaseAttack
from labelmia.attacks.oracle import Model, OracleError, QueryBudgetExhausted, QueryCounter
from labelmia.attacks.results import AttackResult
from labelmia.data.samples import Sample
from labelmia.mathutils.distance import interpolate, l2_distance, normalize
from labelmia.mathutils.stats import mean_vector
from labelmia.mathutils.vectors import clip, clone, new_vector, vector_add, vector_scale

logger = logging.getLogger(__name__)


class HopSkipJump(BaseAttack):
    """Label-only HopSkipJump attack (L2).

    Parameters
    ----------
    config:
        ``HSJAConfig`` with the query budget, iteration counts and clip
        bounds.
    noise:
        ``NoiseGenerator`` for the random initialisation and gradient
        directions.  Give each concurrently running engine its own
        (see ``NoiseGenerator.spawn``) for reproducible runs.

    Notes
    -----
    The engine is single-threaded per call.  It keeps no state between
    ``attack()`` calls, so one instance may be reused sequentially.
    """

    attack_name = "hsja"

    def attack(self, sample: Sample, model: Model) -> AttackResult:
        """Run the attack on one sample.

        Parameters
        ----------
        sample:
            The input to perturb. Its label is the one the attack flips.
        model:
            Label-only oracle. Queries go through a fresh ``QueryCounter``
            holding this attack's budget.

        Returns
        -------
        AttackResult
            ``is_success=False`` with distance 0 if no adversarial
            starting point was found or the oracle failed under the
            ``abort`` policy (then ``error`` is set).

        Raises
        ------
        ValueError
            If the sample length differs from ``model.input_size()`` or a
            value lies outside ``[clip_min, clip_max]``.
        """
        self.check_sample(sample, model)
        oracle = QueryCounter(
            model,
            self.config.max_queries,
            on_error=self.config.on_oracle_error,
            fallback_label=sample.label,
        )

        try:
            result = self._run(sample, oracle)
        except OracleError as exc:
            logger.warning(
                "Sample %d: attack aborted after %d queries, oracle error: %s",
                sample.sample_id, oracle.queries, exc,
            )
            return AttackResult(
                sample_id=sample.sample_id,
                original_label=sample.label,
                final_label=sample.label,
                is_success=False,
                queries=oracle.queries,
                distance=0.0,
                error=str(exc) or type(exc).__name__,
            )

        logger.info(
            "Sample %d: success=%s label %d -> %d, distance=%.6f, queries=%d, oracle errors=%d",
            sample.sample_id, result.is_success, result.original_label,
            result.final_label, result.distance, result.queries, oracle.errors,
        )
        return result

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def _run(self, sample: Sample, oracle: QueryCounter) -> AttackResult:
        cfg = self.config
        original = sample.data
        target = sample.label

        try:
            seed = self._initialize(original, target, oracle)
        except QueryBudgetExhausted:
            seed = None
        if seed is None:
            logger.debug(
                "Sample %d: no adversarial starting point after %d queries",
                sample.sample_id, oracle.queries,
            )
            return AttackResult(
                sample_id=sample.sample_id,
                original_label=target,
                final_label=target,
                is_success=False,
                queries=oracle.queries,
                distance=0.0,
            )

        x_adv, adv_label = seed
        dist = l2_distance(original, x_adv)

        # An already-misclassified original cannot get any closer.
        if dist > 0.0:
            x_adv, adv_label = self._binary_search(original, x_adv, target, oracle, adv_label)
            dist = l2_distance(original, x_adv)

            for i in range(cfg.max_iterations):
                if oracle.exhausted or dist == 0.0:
                    break

                delta = self._compute_delta(dist, i)
                try:
                    grad = self._approximate_gradient(x_adv, target, delta, oracle)
                except QueryBudgetExhausted:
                    break

                step_size = self._compute_step_size(dist, i)
                x_new = vector_add(x_adv, vector_scale(grad, step_size))
                x_new = clip(x_new, cfg.clip_min, cfg.clip_max)

                x_new, new_label = self._binary_search(original, x_new, target, oracle)
                if new_label is None:
                    logger.debug("Iteration %d: stepped point never crossed the boundary", i)
                    continue

                new_dist = l2_distance(original, x_new)
                if new_dist < dist:
                    dist, x_adv, adv_label = new_dist, x_new, new_label
                logger.debug(
                    "Iteration %d: delta=%.5f step=%.5f distance=%.6f queries=%d",
                    i, delta, step_size, dist, oracle.queries,
                )

        final_label = self._final_label(x_adv, adv_label, oracle)
        return AttackResult(
            sample_id=sample.sample_id,
            original_label=target,
            final_label=final_label,
            is_success=final_label != target,
            queries=oracle.queries,
            distance=dist,
            adversarial=x_adv,
        )

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def _initialize(
        self, original: np.ndarray, target: int, oracle: QueryCounter,
    ) -> Optional[tuple[np.ndarray, int]]:
        """Find a starting point labelled differently from *target*.

        The original itself counts if the model already misclassifies
        it. Otherwise up to ``init_evals`` uniform random vectors inside
        the clip bounds are tried.
        """
        label = oracle.predict(original)
        if label != target:
            return clone(original), label

        for _ in range(self.config.init_evals):
            candidate = self.noise.uniform(len(original), self.config.clip_min, self.config.clip_max)
            label = oracle.predict(candidate)
            if label != target:
                return candidate, label
        return None

    def _binary_search(
        self,
        original: np.ndarray,
        adversarial: np.ndarray,
        target: int,
        oracle: QueryCounter,
        adversarial_label: Optional[int] = None,
    ) -> tuple[np.ndarray, Optional[int]]:
        """Bisect the segment ``original -> adversarial`` towards the boundary.

        Runs exactly ``search_steps`` bisections; this bounds the query
        cost rather than testing for convergence.  Returns the closest
        crossing candidate and its label.  If no candidate crossed, the
        input point is returned with *adversarial_label* (``None`` when
        the input was never confirmed adversarial).  Running out of
        budget ends the search early with the best point so far.
        """
        cfg = self.config
        low, high = 0.0, 1.0
        best, best_label = adversarial, adversarial_label

        try:
            for _ in range(cfg.search_steps):
                mid = (low + high) / 2.0
                candidate = clip(interpolate(original, adversarial, mid), cfg.clip_min, cfg.clip_max)
                label = oracle.predict(candidate)
                if label != target:
                    high = mid
                    best, best_label = candidate, label
                else:
                    low = mid
        except QueryBudgetExhausted:
            pass
        return best, best_label

    def _approximate_gradient(
        self, point: np.ndarray, target: int, delta: float, oracle: QueryCounter,
    ) -> np.ndarray:
        """Monte-Carlo estimate of the direction into the adversarial region.

        Each unit direction ``u`` is probed at ``point + delta * u``; it
        contributes ``+u`` if the probe crosses the boundary and ``-u``
        otherwise.  The signed directions are averaged and normalised.

        Raises
        ------
        QueryBudgetExhausted
            If the budget runs out before every probe is answered.
        """
        cfg = self.config
        directions = [normalize(self.noise.gaussian(len(point))) for _ in range(cfg.num_evals)]
        probes = [
            clip(vector_add(point, vector_scale(u, delta)), cfg.clip_min, cfg.clip_max)
            for u in directions
        ]
        labels = self._predict_all(probes, oracle)

        signed = [
            u if label != target else vector_scale(u, -1.0)
            for u, label in zip(directions, labels)
        ]
        grad = mean_vector(signed)
        if grad is None:
            return new_vector(len(point), 0.0)
        return normalize(grad)

    def _predict_all(self, points: Sequence[np.ndarray], oracle: QueryCounter) -> list[int]:
        """Query *points* one at a time or in ``batch_size`` chunks."""
        batch_size = self.config.batch_size
        if batch_size == 1:
            return [oracle.predict(p) for p in points]
        labels: list[int] = []
        for start in range(0, len(points), batch_size):
            labels.extend(oracle.predict_batch(points[start:start + batch_size]))
        return labels

    def _final_label(self, x_adv: np.ndarray, known_label: int, oracle: QueryCounter) -> int:
        """Re-query the final point; fall back to its recorded label without budget."""
        if oracle.exhausted:
            return known_label
        return oracle.predict(x_adv)

    # ------------------------------------------------------------------
    # Step schedules
    # ------------------------------------------------------------------

    def _compute_delta(self, dist: float, iteration: int) -> float:
        """Probe radius for gradient estimation."""
        if iteration == 0:
            return self.config.initial_delta
        return 0.1 * dist / math.sqrt(iteration)

    @staticmethod
    def _compute_step_size(dist: float, iteration: int) -> float:
        return dist / math.sqrt(iteration + 1)
