"""Typed configuration schema for labelmia.

Every section of the YAML config maps to a dataclass here. This gives us
runtime validation, IDE autocompletion, and a single source of truth for
what the config accepts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class DataSource(str, Enum):
    BINARY = "binary"
    TORCHVISION = "torchvision"


class OracleErrorPolicy(str, Enum):
    """What the query counter does when the oracle raises ``OracleError``.

    - ``abort``: stop the attack and return a failure result carrying
      the error message.
    - ``non_adversarial``: count the query and treat the answer as the
      target label, i.e. "did not cross the boundary".
    """

    ABORT = "abort"
    NON_ADVERSARIAL = "non_adversarial"


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class DataConfig:
    """Where the samples to attack come from."""

    source: DataSource = DataSource.BINARY
    path: str = "./data/cifar-10-batches-bin/test_batch.bin"
    # torchvision source only
    dataset: str = "cifar10"
    data_dir: str = "./data"
    train: bool = False
    download: bool = False
    limit: Optional[int] = None
    offset: int = 0


@dataclass
class ModelConfig:
    """Target model served as a label-only oracle."""

    path: str = "./models/target.pt"
    device: str = "auto"
    # None: take the shape of the configured dataset from DATASET_INFO
    input_shape: Optional[list[int]] = None


@dataclass
class HSJAConfig:
    """HopSkipJump attack parameters."""

    max_queries: int = 10000
    max_iterations: int = 50
    num_evals: int = 100
    init_evals: int = 100
    clip_min: float = 0.0
    clip_max: float = 1.0
    initial_delta: float = 0.1
    search_steps: int = 10
    batch_size: int = 1
    on_oracle_error: OracleErrorPolicy = OracleErrorPolicy.ABORT


@dataclass
class MembershipConfig:
    """Distance-threshold membership verdict. ``None`` leaves every verdict False."""

    threshold: Optional[float] = None


@dataclass
class ReportingConfig:
    """Output and reporting settings."""

    output_dir: str = "./results"
    save_csv: bool = True
    save_plots: bool = False
    plot_format: str = "png"


@dataclass
class LabelMIAConfig:
    """Top-level configuration for a labelmia run."""

    experiment_name: str = "hsja"
    seed: Optional[int] = None
    workers: int = 1
    data: DataConfig = field(default_factory=DataConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    attack: HSJAConfig = field(default_factory=HSJAConfig)
    membership: MembershipConfig = field(default_factory=MembershipConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
