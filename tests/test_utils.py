"""Tests for seeding, device selection and experiment tracking."""

from __future__ import annotations

import json
import logging

import numpy as np
import pytest
import torch
import yaml

from labelmia.attacks.results import AttackResult
from labelmia.mathutils import gen_gaussian
from labelmia.utils import ExperimentLogger, get_device, set_seed


@pytest.fixture(autouse=True)
def _reset_labelmia_logger():
    yield
    logger = logging.getLogger("labelmia")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


class TestSetSeed:
    def test_numpy_torch_and_noise_repeat(self) -> None:
        set_seed(123)
        a = (np.random.rand(5), torch.rand(5), gen_gaussian(5))
        set_seed(123)
        b = (np.random.rand(5), torch.rand(5), gen_gaussian(5))
        np.testing.assert_array_equal(a[0], b[0])
        assert torch.equal(a[1], b[1])
        np.testing.assert_array_equal(a[2], b[2])


class TestGetDevice:
    def test_cpu(self) -> None:
        assert get_device("cpu") == torch.device("cpu")

    def test_auto_returns_device(self) -> None:
        assert isinstance(get_device("auto"), torch.device)


class TestExperimentLogger:
    def test_writes_run_artefacts(self, tmp_path) -> None:
        exp = ExperimentLogger("unit", tmp_path)
        exp.log_config({"experiment_name": "unit", "seed": 1})
        info = exp.log_system_info()
        results = [AttackResult(0, 1, 2, True, 300, 0.4), AttackResult(1, 1, 1, False, 50, 0.0)]
        exp.save_results(results)
        summary = exp.save_summary(results, extra={"threshold": 0.3})

        run_dir = tmp_path / "unit"
        assert yaml.safe_load((run_dir / "config.yaml").read_text())["seed"] == 1
        assert json.loads((run_dir / "system_info.json").read_text()) == info
        assert (run_dir / "results.csv").exists()
        assert json.loads((run_dir / "summary.json").read_text()) == summary
        assert summary["num_success"] == 1
        assert summary["threshold"] == 0.3

    def test_log_file_created(self, tmp_path) -> None:
        exp = ExperimentLogger("logged", tmp_path)
        exp.info("hello %s", "world")
        for handler in exp.logger.handlers:
            handler.flush()
        log_file = tmp_path / "logged" / "logs" / "logged.log"
        assert "hello world" in log_file.read_text()
