"""Tests for the labelmia CLI."""

from __future__ import annotations

import json
import logging
import textwrap
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
import torch
import torch.nn as nn

from labelmia.attacks.results import AttackResult
from labelmia.cli import build_parser, main, resolve_input_shape
from labelmia.config import DataSource, default_config
from labelmia.data import Sample, write_binary_samples
from labelmia.reporting import save_results


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _write_yaml(tmp_path: Path, content: str) -> Path:
    p = tmp_path / "config.yaml"
    p.write_text(textwrap.dedent(content))
    return p


@pytest.fixture(autouse=True)
def _reset_labelmia_logger():
    """``ExperimentLogger`` binds handlers to the captured stdout; drop them."""
    yield
    logger = logging.getLogger("labelmia")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture()
def scripted_model(tmp_path: Path) -> Path:
    """TorchScript classifier on 3x2x2 inputs: class 1 iff the first pixel > 0.5."""
    linear = nn.Linear(12, 2)
    with torch.no_grad():
        linear.weight.zero_()
        linear.weight[1, 0] = 1.0
        linear.bias.copy_(torch.tensor([0.5, 0.0]))
    module = torch.jit.script(nn.Sequential(nn.Flatten(), linear))
    path = tmp_path / "target.pt"
    torch.jit.save(module, str(path))
    return path


@pytest.fixture()
def sample_file(tmp_path: Path) -> Path:
    rng = np.random.default_rng(0)
    samples = []
    for i in range(4):
        data = rng.uniform(0.0, 1.0, size=12).astype(np.float32)
        data[0] = 0.1 * i
        samples.append(Sample(sample_id=i, data=data, label=0))
    return write_binary_samples(samples, tmp_path / "batch.bin")


def _attack_config(tmp_path: Path, model: Path, samples: Path) -> Path:
    return _write_yaml(tmp_path, f"""\
        experiment_name: cli_attack
        seed: 0
        workers: 2
        data:
          source: binary
          path: {samples}
        model:
          path: {model}
          device: cpu
          input_shape: [3, 2, 2]
        attack:
          max_queries: 300
          max_iterations: 5
          num_evals: 20
          batch_size: 10
        membership:
          threshold: 0.3
        reporting:
          output_dir: {tmp_path / "out"}
          save_plots: true
    """)


# ---------------------------------------------------------------------------
# Parser tests
# ---------------------------------------------------------------------------

class TestBuildParser:
    def test_version_flag(self, capsys: pytest.CaptureFixture[str]) -> None:
        parser = build_parser()
        with pytest.raises(SystemExit, match="0"):
            parser.parse_args(["--version"])
        assert "labelmia" in capsys.readouterr().out

    def test_attack_requires_config(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["attack"])

    def test_evaluate_requires_inputs(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["evaluate", "--members", "m.csv"])

    def test_show_config_config_optional(self) -> None:
        args = build_parser().parse_args(["show-config"])
        assert args.command == "show-config"
        assert args.config is None


# ---------------------------------------------------------------------------
# main() integration tests
# ---------------------------------------------------------------------------

class TestMain:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert "labelmia" in capsys.readouterr().out

    def test_show_config_defaults(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["show-config"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["experiment_name"] == "hsja"
        assert data["attack"]["max_queries"] == 10000

    def test_show_config_with_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        p = _write_yaml(tmp_path, "experiment_name: custom\n")
        assert main(["show-config", "--config", str(p)]) == 0
        assert json.loads(capsys.readouterr().out)["experiment_name"] == "custom"

    def test_bad_config_path(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["attack", "--config", "/does/not/exist.yaml"]) == 1
        assert "Error" in capsys.readouterr().err

    def test_invalid_config_content(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        p = _write_yaml(tmp_path, "bogus_key: 42\n")
        assert main(["attack", "--config", str(p)]) == 1
        assert "Unknown config keys" in capsys.readouterr().err

    def test_attack_missing_model(
        self, tmp_path: Path, sample_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        p = _attack_config(tmp_path, tmp_path / "missing.pt", sample_file)
        assert main(["attack", "--config", str(p)]) == 1
        assert "Model file not found" in capsys.readouterr().err


class TestAttackCommand:
    def test_end_to_end(
        self,
        tmp_path: Path,
        scripted_model: Path,
        sample_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        p = _attack_config(tmp_path, scripted_model, sample_file)
        assert main(["attack", "--config", str(p)]) == 0
        out = capsys.readouterr().out
        assert "[attack] experiment   : cli_attack" in out
        assert "[attack] samples      : 4" in out

        run_dir = tmp_path / "out" / "cli_attack"
        df = pd.read_csv(run_dir / "results.csv")
        assert df["sample_id"].tolist() == [0, 1, 2, 3]
        assert (df["queries"] <= 300).all()
        assert df["is_success"].all()
        # Every sample sits at least 0.2 below the boundary
        assert (df["distance"] >= 0.2 - 1e-6).all()
        assert (df["is_member"] == (df["distance"] > 0.3)).all()

        assert (run_dir / "config.yaml").exists()
        assert (run_dir / "queries_vs_distance.png").exists()
        summary = json.loads((run_dir / "summary.json").read_text())
        assert summary["num_samples"] == 4
        log_text = (run_dir / "logs" / "cli_attack.log").read_text()
        assert "Run cli_attack finished: 4/4 attacks succeeded" in log_text

    def test_seeded_runs_identical(
        self, tmp_path: Path, scripted_model: Path, sample_file: Path,
    ) -> None:
        p = _attack_config(tmp_path, scripted_model, sample_file)
        assert main(["attack", "--config", str(p)]) == 0
        first = (tmp_path / "out" / "cli_attack" / "results.csv").read_text()
        assert main(["attack", "--config", str(p)]) == 0
        second = (tmp_path / "out" / "cli_attack" / "results.csv").read_text()
        assert first == second


class TestEvaluateCommand:
    @pytest.fixture()
    def result_files(self, tmp_path: Path) -> tuple[Path, Path]:
        members = [AttackResult(i, 0, 1, True, 500, 0.8 + 0.01 * i) for i in range(5)]
        nonmembers = [AttackResult(10 + i, 0, 1, True, 500, 0.2 + 0.01 * i) for i in range(5)]
        nonmembers.append(AttackResult(20, 0, 0, False, 37, 0.0, error="timeout"))
        return (
            save_results(members, tmp_path / "members.csv"),
            save_results(nonmembers, tmp_path / "nonmembers.csv"),
        )

    def test_fitted_threshold(
        self, result_files, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        members, nonmembers = result_files
        plot = tmp_path / "hist.png"
        rc = main([
            "evaluate", "--members", str(members), "--nonmembers", str(nonmembers),
            "--plot", str(plot),
        ])
        assert rc == 0
        data = json.loads(capsys.readouterr().out)
        assert 0.24 <= data["threshold"] < 0.8
        assert data["accuracy"] == 1.0
        assert data["auc_roc"] == pytest.approx(1.0)
        assert plot.exists()

    def test_explicit_threshold(
        self, result_files, capsys: pytest.CaptureFixture[str]
    ) -> None:
        members, nonmembers = result_files
        rc = main([
            "evaluate", "--members", str(members), "--nonmembers", str(nonmembers),
            "--threshold", "1.0",
        ])
        assert rc == 0
        data = json.loads(capsys.readouterr().out)
        assert data["threshold"] == 1.0
        assert data["recall"] == 0.0

    def test_missing_results_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        rc = main([
            "evaluate", "--members", str(tmp_path / "a.csv"),
            "--nonmembers", str(tmp_path / "b.csv"),
        ])
        assert rc == 1
        assert "Results file not found" in capsys.readouterr().err


class TestResolveInputShape:
    def test_explicit_shape_wins(self) -> None:
        cfg = default_config()
        cfg.model.input_shape = [1, 28, 28]
        assert resolve_input_shape(cfg) == (1, 28, 28)

    def test_binary_source_defaults_to_cifar10(self) -> None:
        assert resolve_input_shape(default_config()) == (3, 32, 32)

    def test_torchvision_source_uses_dataset_shape(self) -> None:
        cfg = default_config()
        cfg.data.source = DataSource.TORCHVISION
        cfg.data.dataset = "mnist"
        assert resolve_input_shape(cfg) == (1, 28, 28)

    def test_unknown_dataset(self) -> None:
        cfg = default_config()
        cfg.data.source = DataSource.TORCHVISION
        cfg.data.dataset = "imagenet"
        with pytest.raises(ValueError, match="set model.input_shape"):
            resolve_input_shape(cfg)
