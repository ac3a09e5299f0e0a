"""Plots of HopSkipJump boundary distances.

Uses the ``Agg`` backend so plots can be produced on headless machines.
Each function optionally saves to disk and returns the figure.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import matplotlib
matplotlib.use("Agg")  # must come before the pyplot import

import matplotlib.pyplot as plt
import numpy as np

from labelmia.attacks.results import AttackResult


def plot_distance_distributions(
    member_distances: Sequence[float],
    nonmember_distances: Sequence[float],
    threshold: float | None = None,
    save_path: str | Path | None = None,
    title: str = "Boundary distance: members vs non-members",
) -> plt.Figure:
    """Overlapping histograms of member and non-member L2 distances.

    Well-separated histograms mean the distance leaks membership.
    """
    fig, ax = plt.subplots(figsize=(8, 5))

    all_d = np.concatenate([
        np.asarray(member_distances, dtype=np.float64),
        np.asarray(nonmember_distances, dtype=np.float64),
    ])
    if all_d.size and all_d.max() > all_d.min():
        bins = np.linspace(all_d.min(), all_d.max(), 50)
    else:
        bins = 10

    ax.hist(member_distances, bins=bins, alpha=0.6, color="#2563eb",
            label=f"Members (n={len(member_distances)})", density=True)
    ax.hist(nonmember_distances, bins=bins, alpha=0.6, color="#dc2626",
            label=f"Non-members (n={len(nonmember_distances)})", density=True)

    if threshold is not None:
        ax.axvline(threshold, color="black", linestyle="--", lw=1.5,
                   label=f"Threshold = {threshold:.4f}")

    ax.set_xlabel("L2 distance to decision boundary")
    ax.set_ylabel("Density")
    ax.set_title(title)
    ax.legend()
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    if save_path is not None:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return fig


def plot_queries_vs_distance(
    results: Sequence[AttackResult],
    save_path: str | Path | None = None,
    title: str = "Query cost vs final distance",
) -> plt.Figure:
    """Scatter of queries spent against final distance, successes only."""
    fig, ax = plt.subplots(figsize=(7, 5))

    successful = [r for r in results if r.is_success]
    ax.scatter([r.queries for r in successful], [r.distance for r in successful],
               s=12, alpha=0.7, color="#2563eb")

    ax.set_xlabel("Oracle queries")
    ax.set_ylabel("L2 distance")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)

    fig.tight_layout()
    if save_path is not None:
        fig.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return fig
