"""labelmia result export and plots."""

from labelmia.reporting.reporter import (
    load_results,
    results_to_frame,
    save_results,
    summarize,
)
from labelmia.reporting.visualization import (
    plot_distance_distributions,
    plot_queries_vs_distance,
)

__all__ = [
    "load_results",
    "plot_distance_distributions",
    "plot_queries_vs_distance",
    "results_to_frame",
    "save_results",
    "summarize",
]
