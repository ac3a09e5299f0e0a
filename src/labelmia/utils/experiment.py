"""Experiment tracking for labelmia.

``ExperimentLogger`` manages the output directory for a single attack
run::

    results/<experiment_name>/
    ├── config.yaml
    ├── system_info.json
    ├── results.csv
    ├── summary.json
    ├── queries_vs_distance.<fmt>   (optional)
    └── logs/
        └── <experiment_name>.log
"""

from __future__ import annotations

import json
import platform
import sys
from pathlib import Path
from typing import Any, Sequence

import numpy as np
import torch
import yaml

from labelmia import __version__
from labelmia.attacks.results import AttackResult
from labelmia.reporting.reporter import save_results, summarize
from labelmia.utils.logging import setup_logging


class ExperimentLogger:
    """Manages artefacts for a single experiment run.

    Parameters
    ----------
    experiment_name:
        Human-readable experiment identifier.
    output_dir:
        Root directory under which the experiment folder is created.
    """

    def __init__(
        self,
        experiment_name: str = "hsja",
        output_dir: str | Path = "./results",
    ) -> None:
        self.experiment_name = experiment_name
        self.run_dir = Path(output_dir) / experiment_name
        self.run_dir.mkdir(parents=True, exist_ok=True)

        self.log_dir = self.run_dir / "logs"
        self.logger = setup_logging(log_dir=self.log_dir, experiment_name=experiment_name)

    # ── config ───────────────────────────────────────────────────────────

    def log_config(self, config: dict[str, Any]) -> Path:
        """Write the resolved config to ``config.yaml``."""
        path = self.run_dir / "config.yaml"
        path.write_text(yaml.dump(config, default_flow_style=False, sort_keys=False))
        self.logger.info("Config saved to %s", path)
        return path

    # ── system info ──────────────────────────────────────────────────────

    def log_system_info(self) -> dict[str, Any]:
        """Capture and save system/library versions."""
        info: dict[str, Any] = {
            "labelmia_version": __version__,
            "python_version": sys.version,
            "platform": platform.platform(),
            "hostname": platform.node(),
            "numpy_version": np.__version__,
            "pytorch_version": torch.__version__,
            "cuda_available": torch.cuda.is_available(),
        }
        path = self.run_dir / "system_info.json"
        path.write_text(json.dumps(info, indent=2))
        self.logger.debug("System info: %s", json.dumps(info))
        return info

    # ── results ──────────────────────────────────────────────────────────

    def save_results(self, results: Sequence[AttackResult]) -> Path:
        """Write per-sample results to ``results.csv``."""
        return save_results(results, self.run_dir / "results.csv")

    def save_summary(
        self,
        results: Sequence[AttackResult],
        extra: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Write aggregate statistics (plus *extra*) to ``summary.json``."""
        summary = summarize(results)
        if extra:
            summary.update(extra)
        path = self.run_dir / "summary.json"
        path.write_text(json.dumps(summary, indent=2))
        self.logger.info("Summary: %s", json.dumps(summary))
        return summary

    def info(self, msg: str, *args: Any) -> None:
        """Shortcut to ``self.logger.info``."""
        self.logger.info(msg, *args)
