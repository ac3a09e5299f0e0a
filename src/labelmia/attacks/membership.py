"""Membership verdicts from boundary distances.

Training members are usually classified more robustly, so their
HopSkipJump distance tends to be *larger* than that of non-members.  A
sample is predicted to be a member when its distance exceeds a
threshold.  The engine never decides membership itself; this module
turns a list of ``AttackResult`` into verdicts and scores them.

References
----------
Choquette-Choo et al., "Label-Only Membership Inference Attacks",
ICML 2021.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Sequence

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    auc,
    f1_score,
    precision_recall_curve,
    precision_score,
    recall_score,
    roc_auc_score,
    roc_curve,
)

from labelmia.attacks.results import AttackResult

logger = logging.getLogger(__name__)


class DistanceThresholdPolicy:
    """Predict membership as ``distance > threshold``.

    Aborted attacks and attacks that never found an adversarial point
    carry no distance information and are always non-members.
    """

    def __init__(self, threshold: float) -> None:
        self.threshold = float(threshold)

    def is_member(self, result: AttackResult) -> bool:
        if result.aborted or not result.is_success:
            return False
        return result.distance > self.threshold

    def apply(self, results: Sequence[AttackResult]) -> list[AttackResult]:
        """Return copies of *results* with ``is_member`` filled in."""
        judged = [dataclasses.replace(r, is_member=self.is_member(r)) for r in results]
        logger.info(
            "Threshold %.6f: %d/%d samples predicted members",
            self.threshold, sum(r.is_member for r in judged), len(judged),
        )
        return judged


def fit_threshold(
    member_distances: Sequence[float],
    nonmember_distances: Sequence[float],
    max_candidates: int = 1000,
) -> float:
    """Pick the distance threshold that maximises membership accuracy.

    Tries every unique distance (subsampled to *max_candidates*) as a
    threshold, predicting ``distance > t`` as member.
    """
    scores = np.concatenate([
        np.asarray(member_distances, dtype=np.float64),
        np.asarray(nonmember_distances, dtype=np.float64),
    ])
    if scores.size == 0:
        raise ValueError("Need at least one distance to fit a threshold")
    ground_truth = np.concatenate([
        np.ones(len(member_distances)),     # 1 = member
        np.zeros(len(nonmember_distances)),  # 0 = non-member
    ])

    sorted_scores = np.unique(scores)
    if len(sorted_scores) > max_candidates:
        indices = np.linspace(0, len(sorted_scores) - 1, max_candidates, dtype=int)
        candidates = sorted_scores[indices]
    else:
        candidates = sorted_scores

    # Thresholds sit at each distance and just below the smallest one.
    candidates = np.concatenate([[np.nextafter(sorted_scores[0], -np.inf)], candidates])

    best_acc = -1.0
    best_threshold = float(np.median(scores))
    for t in candidates:
        acc = float(np.mean((scores > t).astype(int) == ground_truth))
        if acc > best_acc:
            best_acc = acc
            best_threshold = float(t)
    return best_threshold


def evaluate_membership(
    results: Sequence[AttackResult],
    ground_truth: Sequence[int],
) -> dict[str, float]:
    """Score membership verdicts against known membership.

    Parameters
    ----------
    results:
        Results with ``is_member`` already set (see
        ``DistanceThresholdPolicy.apply``).
    ground_truth:
        1 for actual members, 0 for non-members, aligned with *results*.

    Returns
    -------
    dict with keys:
        accuracy, precision, recall, f1, auc_roc, auc_pr,
        tpr_at_1fpr, tpr_at_01fpr
    """
    if len(results) != len(ground_truth):
        raise ValueError(
            f"results length ({len(results)}) != ground_truth length ({len(ground_truth)})"
        )
    gt = np.asarray(ground_truth, dtype=int)
    predictions = np.array([int(r.is_member) for r in results])
    # Distance is the continuous score; higher = more likely member.
    scores = np.array([r.distance for r in results], dtype=np.float64)

    metrics: dict[str, float] = {
        "accuracy": float(accuracy_score(gt, predictions)),
        "precision": float(precision_score(gt, predictions, zero_division=0)),
        "recall": float(recall_score(gt, predictions, zero_division=0)),
        "f1": float(f1_score(gt, predictions, zero_division=0)),
    }

    if len(np.unique(gt)) == 2:
        fpr, tpr, _ = roc_curve(gt, scores)
        metrics["auc_roc"] = float(roc_auc_score(gt, scores))
        metrics["tpr_at_1fpr"] = float(np.interp(0.01, fpr, tpr))
        metrics["tpr_at_01fpr"] = float(np.interp(0.001, fpr, tpr))
        prec_arr, rec_arr, _ = precision_recall_curve(gt, scores)
        metrics["auc_pr"] = float(auc(rec_arr, prec_arr))
    else:
        # AUC is undefined with a single class
        metrics["auc_roc"] = 0.0
        metrics["tpr_at_1fpr"] = 0.0
        metrics["tpr_at_01fpr"] = 0.0
        metrics["auc_pr"] = 0.0

    return metrics
