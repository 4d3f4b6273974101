"""
Smoke tests for the command-line runners.
"""

import importlib.util
import json
import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from flow_sim.config import Parameters, RunConfig
from flow_sim.logger_setup import LOGGER_NAME


def _load_script(name):
    path = ROOT / "src" / "scripts" / f"{name}.py"
    spec = importlib.util.spec_from_file_location(f"flow_scripts_{name}", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


def test_run_single_writes_seed_folder(tmp_path):
    config_path = tmp_path / "run.json"
    config_path.write_text(json.dumps({
        "width": 40.0,
        "height": 30.0,
        "parameters": {"columns": 4, "rows": 3, "particleCount": 5},
    }))
    run_single = _load_script("run_single")

    code = run_single.main([
        str(tmp_path / "out"), "123", "--mode", "field", "--config", str(config_path), "--npz",
    ])

    assert code == 0
    out = tmp_path / "out" / "123"
    for name in ("image.png", "image.txt", "parameters.json", "lines.npz"):
        assert (out / name).exists()
    assert len((out / "image.txt").read_text().splitlines()) == 12


def test_run_single_rejects_bad_config(tmp_path):
    run_single = _load_script("run_single")
    with pytest.raises(SystemExit):
        run_single.main([str(tmp_path), "1", "--width", "-5"])


def test_batch_worker_renders_one_seed(tmp_path):
    run_batch = _load_script("run_batch")
    config = RunConfig(
        width=40.0,
        height=30.0,
        mode="field",
        parameters=Parameters(columns=4, rows=3, particle_count=5),
    )
    record = run_batch.run_single_drawing(config.to_dict(), 9, str(tmp_path))
    assert record["success"]
    assert record["seed"] == 9
    assert record["lines"] == 12
    assert (tmp_path / "9" / "parameters.json").exists()
