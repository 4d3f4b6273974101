"""
Unit tests for run configuration and parameter records.
"""

import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

from flow_sim.config import Parameters, RunConfig, WindowLayout, load_config
from flow_sim.errors import ConfigError
from flow_sim.utils import load_params


def test_default_parameters():
    params = Parameters()
    assert params.to_dict() == {
        "particleCount": 3000,
        "particleLoops": 2,
        "maxVelocity": 8.0,
        "columns": 100,
        "rows": 100,
        "vectorFieldMagnitude": 6.0,
        "noisePersistence": 0.65,
    }


def test_parameters_from_either_key_style():
    camel = Parameters.from_dict({"particleCount": 10, "maxVelocity": 2.5})
    snake = Parameters.from_dict({"particle_count": 10, "max_velocity": 2.5})
    assert camel == snake == Parameters(particle_count=10, max_velocity=2.5)
    assert Parameters.from_dict(Parameters().to_dict()) == Parameters()


def test_unknown_parameter_rejected():
    with pytest.raises(ConfigError):
        Parameters.from_dict({"particleCnt": 10})


@pytest.mark.parametrize(
    "kwargs",
    [
        {"particle_count": 0},
        {"particle_loops": -1},
        {"max_velocity": 0.0},
        {"max_velocity": -2.0},
        {"columns": 0},
        {"rows": -3},
        {"vector_field_magnitude": 0.0},
    ],
)
def test_invalid_parameters(kwargs):
    with pytest.raises(ConfigError):
        Parameters(**kwargs).validate()


def test_persistence_above_one_allowed():
    Parameters(noise_persistence=1.5).validate()
    with pytest.raises(ConfigError):
        Parameters(noise_persistence=0.0).validate()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"width": 0.0},
        {"height": -10.0},
        {"width": 0.5},
        {"height": 0.99},
        {"mode": "spiral"},
        {"seed": -1},
        {"seed": 2**64},
        {"line_width": 0.0},
        {"max_steps_per_particle": 0},
        {"windows": WindowLayout(count=-1)},
        {"parameters": Parameters(particle_count=0)},
    ],
)
def test_invalid_run_config(kwargs):
    with pytest.raises(ConfigError):
        RunConfig(**kwargs).validate()


def test_run_config_round_trip():
    config = RunConfig(
        seed=123,
        width=300.0,
        height=200.0,
        mode="windowed",
        parameters=Parameters(particle_count=50, columns=12, rows=8),
        windows=WindowLayout(count=2, origin=(10.0, 10.0), size=(50.0, 150.0), spacing=20.0),
    )
    data = json.loads(json.dumps(config.to_dict()))
    assert RunConfig.from_dict(data) == config


def test_unknown_config_key():
    with pytest.raises(ConfigError):
        RunConfig.from_dict({"sede": 3})


def test_load_json_config(tmp_path):
    path = tmp_path / "run.json"
    path.write_text(json.dumps({
        "width": 400,
        "height": 300,
        "parameters": {"particleCount": 25, "noisePersistence": 0.9},
    }))
    config = load_config(path, seed=9, mode=None)
    assert config.seed == 9
    assert config.mode == "flow"
    assert config.width == 400
    assert config.parameters.particle_count == 25
    assert config.parameters.noise_persistence == 0.9


def test_load_toml_config(tmp_path):
    pytest.importorskip("tomllib")
    path = tmp_path / "run.toml"
    path.write_text(
        'mode = "field"\n'
        "width = 120.0\n"
        "\n"
        "[parameters]\n"
        "columns = 6\n"
        "rows = 4\n"
    )
    config = load_config(path)
    assert config.mode == "field"
    assert config.parameters.columns == 6
    assert config.parameters.rows == 4


def test_unsupported_suffix(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text("width: 3\n")
    with pytest.raises(ValueError):
        load_params(path)


def test_window_layout_rects():
    rects = WindowLayout(count=3, origin=(0.0, 0.0), size=(10.0, 20.0), spacing=5.0).rects()
    assert [r.x for r in rects] == [0.0, 15.0, 30.0]
