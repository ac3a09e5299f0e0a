"""labelmia command-line interface.

Entry point registered as ``labelmia`` in pyproject.toml.

Usage examples::

    labelmia attack      --config configs/default.yaml
    labelmia evaluate    --members members.csv --nonmembers nonmembers.csv
    labelmia show-config --config configs/default.yaml
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import torch

from labelmia import __version__
from labelmia.attacks import (
    DistanceThresholdPolicy,
    TorchOracle,
    evaluate_membership,
    fit_threshold,
    run_attacks,
)
from labelmia.config import (
    DataSource,
    LabelMIAConfig,
    config_to_dict,
    default_config,
    load_config,
)
from labelmia.data import (
    DATASET_INFO,
    Sample,
    load_binary_samples,
    load_torchvision_samples,
)
from labelmia.reporting import (
    load_results,
    plot_distance_distributions,
    plot_queries_vs_distance,
)
from labelmia.utils import ExperimentLogger, get_device, set_seed


# ---------------------------------------------------------------------------
# Wiring helpers
# ---------------------------------------------------------------------------

def resolve_input_shape(cfg: LabelMIAConfig) -> tuple[int, ...]:
    """Model input shape: ``model.input_shape`` if set, else the dataset's.

    Binary batches are CIFAR-10 records; torchvision sources use the
    shape of ``data.dataset``.
    """
    if cfg.model.input_shape is not None:
        return tuple(cfg.model.input_shape)
    name = cfg.data.dataset if cfg.data.source is DataSource.TORCHVISION else "cifar10"
    if name not in DATASET_INFO:
        raise ValueError(
            f"No known input shape for dataset {name!r}; set model.input_shape"
        )
    return DATASET_INFO[name].input_shape


def _load_samples(cfg: LabelMIAConfig) -> list[Sample]:
    data = cfg.data
    if data.source is DataSource.BINARY:
        return load_binary_samples(
            data.path, limit=data.limit, offset=data.offset, shape=resolve_input_shape(cfg),
        )
    return load_torchvision_samples(
        data.dataset, train=data.train, data_dir=data.data_dir,
        download=data.download, limit=data.limit, offset=data.offset,
    )


def _load_oracle(cfg: LabelMIAConfig) -> TorchOracle:
    """Load the TorchScript target model as a label-only oracle."""
    path = Path(cfg.model.path)
    if not path.exists():
        raise FileNotFoundError(f"Model file not found: {path}")
    device = get_device(cfg.model.device)
    module = torch.jit.load(str(path), map_location=device)
    return TorchOracle(module, resolve_input_shape(cfg), device=device)


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------

def _handle_attack(args: argparse.Namespace, cfg: LabelMIAConfig) -> None:
    """Attack every configured sample and write the results."""
    exp = ExperimentLogger(cfg.experiment_name, cfg.reporting.output_dir)
    exp.log_config(config_to_dict(cfg))
    exp.log_system_info()
    if cfg.seed is not None:
        set_seed(cfg.seed)

    samples = _load_samples(cfg)
    oracle = _load_oracle(cfg)
    results = run_attacks(samples, oracle, cfg.attack, workers=cfg.workers, seed=cfg.seed)

    if cfg.membership.threshold is not None:
        results = DistanceThresholdPolicy(cfg.membership.threshold).apply(results)

    if cfg.reporting.save_csv:
        exp.save_results(results)
    if cfg.reporting.save_plots:
        plot_queries_vs_distance(
            results, save_path=exp.run_dir / f"queries_vs_distance.{cfg.reporting.plot_format}",
        )
    summary = exp.save_summary(results)
    exp.info(
        "Run %s finished: %d/%d attacks succeeded",
        cfg.experiment_name, summary["num_success"], summary["num_samples"],
    )

    print(f"[attack] experiment   : {cfg.experiment_name}")
    print(f"[attack] samples      : {summary['num_samples']}")
    print(f"[attack] success rate : {summary['success_rate']:.3f}")
    print(f"[attack] mean distance: {summary['mean_distance']:.6f}")
    print(f"[attack] results in   : {exp.run_dir}")


def _handle_evaluate(args: argparse.Namespace, cfg: LabelMIAConfig) -> None:
    """Fit (or apply) a distance threshold to known members / non-members."""
    members = load_results(args.members)
    nonmembers = load_results(args.nonmembers)

    threshold = args.threshold
    if threshold is None:
        threshold = cfg.membership.threshold
    if threshold is None:
        threshold = fit_threshold(
            [r.distance for r in members if r.is_success],
            [r.distance for r in nonmembers if r.is_success],
        )

    policy = DistanceThresholdPolicy(threshold)
    judged = policy.apply(members + nonmembers)
    ground_truth = [1] * len(members) + [0] * len(nonmembers)
    metrics = evaluate_membership(judged, ground_truth)

    if args.plot is not None:
        plot_distance_distributions(
            [r.distance for r in members if r.is_success],
            [r.distance for r in nonmembers if r.is_success],
            threshold=threshold,
            save_path=args.plot,
        )

    print(json.dumps({"threshold": threshold, **metrics}, indent=2))


def _handle_show_config(args: argparse.Namespace, cfg: LabelMIAConfig) -> None:
    """Print the fully-resolved configuration as JSON."""
    print(json.dumps(config_to_dict(cfg), indent=2))


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="labelmia",
        description="labelmia: label-only membership inference with HopSkipJump",
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"labelmia {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # -- attack --------------------------------------------------------------
    attack_p = subparsers.add_parser(
        "attack",
        help="Run HopSkipJump against a TorchScript model",
    )
    attack_p.add_argument(
        "-c", "--config",
        type=str,
        required=True,
        help="Path to YAML configuration file",
    )

    # -- evaluate ------------------------------------------------------------
    eval_p = subparsers.add_parser(
        "evaluate",
        help="Score membership inference from member / non-member result CSVs",
    )
    eval_p.add_argument("--members", type=str, required=True,
                        help="results.csv of samples known to be training members")
    eval_p.add_argument("--nonmembers", type=str, required=True,
                        help="results.csv of samples known to be non-members")
    eval_p.add_argument("--threshold", type=float, default=None,
                        help="Distance threshold (default: config value, else fitted)")
    eval_p.add_argument("--plot", type=str, default=None,
                        help="Save a distance histogram to this path")
    eval_p.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (omit for defaults)",
    )

    # -- show-config ---------------------------------------------------------
    show_p = subparsers.add_parser(
        "show-config",
        help="Print resolved configuration as JSON",
    )
    show_p.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (omit for defaults)",
    )

    return parser


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

_HANDLERS = {
    "attack": _handle_attack,
    "evaluate": _handle_evaluate,
    "show-config": _handle_show_config,
}


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns an exit code (0 = success)."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    # Load config
    config_path = getattr(args, "config", None)
    if config_path is not None:
        try:
            cfg = load_config(config_path)
        except (FileNotFoundError, ValueError) as exc:
            print(f"Error loading config: {exc}", file=sys.stderr)
            return 1
    else:
        cfg = default_config()

    # Dispatch
    handler = _HANDLERS[args.command]
    try:
        handler(args, cfg)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
