"""Tabular export of per-sample attack results.

``AttackResult`` records become one row each in a pandas DataFrame with
the report columns; the adversarial vectors themselves are not exported.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence

import numpy as np
import pandas as pd

from labelmia.attacks.results import REPORT_FIELDS, AttackResult

logger = logging.getLogger(__name__)


def results_to_frame(results: Sequence[AttackResult]) -> pd.DataFrame:
    """One row per result, columns in ``REPORT_FIELDS`` order."""
    return pd.DataFrame([r.to_record() for r in results], columns=list(REPORT_FIELDS))


def save_results(results: Sequence[AttackResult], path: str | Path) -> Path:
    """Write *results* to a CSV file and return its path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = results_to_frame(results)
    df.to_csv(path, index=False)
    logger.info("Results saved to %s (%d rows)", path, len(df))
    return path


def load_results(path: str | Path) -> list[AttackResult]:
    """Read results written by ``save_results`` (without adversarial vectors)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Results file not found: {path}")
    df = pd.read_csv(path)
    missing = set(REPORT_FIELDS) - set(df.columns)
    if missing:
        raise ValueError(f"{path} is missing columns: {sorted(missing)}")

    return [
        AttackResult(
            sample_id=int(row.sample_id),
            original_label=int(row.original_label),
            final_label=int(row.final_label),
            is_success=bool(row.is_success),
            queries=int(row.queries),
            distance=float(row.distance),
            is_member=bool(row.is_member),
            error=None if pd.isna(row.error) else str(row.error),
        )
        for row in df.itertuples(index=False)
    ]


def summarize(results: Sequence[AttackResult]) -> dict[str, Any]:
    """Aggregate statistics over a run.

    Distance statistics only cover successful attacks, since failed
    ones report a placeholder distance of 0.
    """
    n = len(results)
    successful = [r for r in results if r.is_success]
    distances = np.array([r.distance for r in successful], dtype=np.float64)
    queries = np.array([r.queries for r in results], dtype=np.float64)

    return {
        "num_samples": n,
        "num_success": len(successful),
        "success_rate": len(successful) / n if n else 0.0,
        "num_aborted": sum(r.aborted for r in results),
        "num_members": sum(r.is_member for r in results),
        "mean_queries": float(queries.mean()) if n else 0.0,
        "median_queries": float(np.median(queries)) if n else 0.0,
        "mean_distance": float(distances.mean()) if distances.size else 0.0,
        "median_distance": float(np.median(distances)) if distances.size else 0.0,
    }
