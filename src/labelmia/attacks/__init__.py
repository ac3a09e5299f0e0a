"""labelmia decision-based attacks.

All attacks inherit from ``BaseAttack`` and return one ``AttackResult``
per sample.  Use ``get_attack()`` to instantiate an attack by name.
"""

from __future__ import annotations

import importlib

from labelmia.attacks.base import BaseAttack
from labelmia.attacks.membership import (
    DistanceThresholdPolicy,
    evaluate_membership,
    fit_threshold,
)
from labelmia.attacks.oracle import (
    Model,
    OracleError,
    QueryBudgetExhausted,
    QueryCounter,
    ScoreOracle,
    TorchOracle,
)
from labelmia.attacks.results import AttackResult
from labelmia.attacks.runner import run_attacks
from labelmia.config.schema import HSJAConfig
from labelmia.mathutils.noise import NoiseGenerator

# Attack name -> dotted path of the implementing class.
_ATTACK_REGISTRY: dict[str, str] = {
    "hsja": "labelmia.attacks.hsja.HopSkipJump",
}


def get_attack(
    name: str,
    config: HSJAConfig | None = None,
    noise: NoiseGenerator | None = None,
) -> BaseAttack:
    """Instantiate a concrete attack by name.

    Raises
    ------
    ValueError
        If *name* is not a registered attack.
    """
    if name not in _ATTACK_REGISTRY:
        raise ValueError(f"Unknown attack {name!r}. Available: {sorted(_ATTACK_REGISTRY)}")

    module_path, class_name = _ATTACK_REGISTRY[name].rsplit(".", 1)
    cls = getattr(importlib.import_module(module_path), class_name)
    return cls(config=config, noise=noise)


__all__ = [
    "AttackResult",
    "BaseAttack",
    "DistanceThresholdPolicy",
    "Model",
    "OracleError",
    "QueryBudgetExhausted",
    "QueryCounter",
    "ScoreOracle",
    "TorchOracle",
    "evaluate_membership",
    "fit_threshold",
    "get_attack",
    "run_attacks",
]
