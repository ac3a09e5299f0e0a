"""Abstract base class for labelmia decision-based attacks.

Every concrete attack takes one ``Sample`` and a label-only ``Model`` and
returns one ``AttackResult``.  This keeps the runner and the reporter
independent of the attack algorithm.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from labelmia.attacks.oracle import Model
from labelmia.attacks.results import AttackResult
from labelmia.config.schema import HSJAConfig
from labelmia.data.samples import Sample
from labelmia.mathutils.noise import NoiseGenerator, default_generator


class BaseAttack(ABC):
    """Abstract base for per-sample attacks.

    Parameters
    ----------
    config:
        Attack parameters, read-only during an attack.
    noise:
        Random source for the attack. Defaults to the shared
        process-wide generator.
    """

    attack_name: str = "base"  # overridden by each subclass

    def __init__(
        self,
        config: HSJAConfig | None = None,
        noise: NoiseGenerator | None = None,
    ) -> None:
        self.config = config or HSJAConfig()
        self.noise = noise or default_generator()
        self._validate_config()

    @abstractmethod
    def attack(self, sample: Sample, model: Model) -> AttackResult:
        """Attack *sample* through *model* and return the outcome."""
        ...

    # ------------------------------------------------------------------
    # Shared checks
    # ------------------------------------------------------------------

    def _validate_config(self) -> None:
        cfg = self.config
        if cfg.max_queries < 0:
            raise ValueError(f"max_queries must be >= 0, got {cfg.max_queries}")
        for name in ("max_iterations", "init_evals"):
            if getattr(cfg, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(cfg, name)}")
        for name in ("num_evals", "search_steps", "batch_size"):
            if getattr(cfg, name) < 1:
                raise ValueError(f"{name} must be >= 1, got {getattr(cfg, name)}")
        if cfg.clip_min >= cfg.clip_max:
            raise ValueError(
                f"clip_min ({cfg.clip_min}) must be smaller than clip_max ({cfg.clip_max})"
            )

    @staticmethod
    def check_input_size(sample: Sample, model: Model) -> None:
        """Raise ``ValueError`` if the sample does not fit the model's input."""
        expected = model.input_size()
        if len(sample.data) != expected:
            raise ValueError(
                f"Sample {sample.sample_id} has {len(sample.data)} values, "
                f"model expects {expected}"
            )

    def check_sample(self, sample: Sample, model: Model) -> None:
        """Raise ``ValueError`` unless *sample* fits *model* and the clip bounds.

        An original outside ``[clip_min, clip_max]`` could otherwise be
        returned as its own adversarial point.
        """
        self.check_input_size(sample, model)
        lo, hi = self.config.clip_min, self.config.clip_max
        if len(sample.data) and (sample.data.min() < lo or sample.data.max() > hi):
            raise ValueError(
                f"Sample {sample.sample_id} has values outside [{lo}, {hi}] "
                f"(min {float(sample.data.min())}, max {float(sample.data.max())})"
            )
