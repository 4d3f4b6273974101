"""
Unit tests for rasterization, file output and logging setup.
"""

import json
import logging
import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT / "src") not in sys.path:
    sys.path.insert(0, str(ROOT / "src"))

import matplotlib.pyplot as plt

from flow_sim.config import Parameters, RunConfig, WINDOW_STROKE
from flow_sim.drawing import FlowFieldDrawing
from flow_sim.export import FileWriter, format_lines
from flow_sim.geometry import Rect
from flow_sim.logger_setup import LOGGER_NAME, setup_logging
from flow_sim.render import Canvas, FillRect, StrokeLines, rasterize, to_rgba8
from flow_sim.utils import load_lines_npz


###############################################################################
# Rasterizer
###############################################################################


def test_to_rgba8():
    np.testing.assert_array_equal(to_rgba8((1.0, 0.0, 0.0)), [255, 0, 0, 255])
    np.testing.assert_array_equal(to_rgba8(WINDOW_STROKE), [97, 94, 82, 255])
    np.testing.assert_array_equal(to_rgba8((2.0, -1.0, 0.5, 0.0)), [255, 0, 128, 0])


def test_fill_whole_canvas():
    canvas = Canvas(4, 3)
    canvas.fill(Rect(0.0, 0.0, 4.0, 3.0), (1.0, 1.0, 1.0, 1.0))
    assert np.all(canvas.image == 255)


def test_fill_bottom_row_is_last_image_row():
    canvas = Canvas(4, 3)
    canvas.fill(Rect(0.0, 0.0, 2.0, 1.0), (1.0, 1.0, 1.0, 1.0))
    assert np.all(canvas.image[2, :2] == 255)
    assert np.all(canvas.image[2, 2:] == 0)
    assert np.all(canvas.image[:2] == 0)


def test_thin_stroke_flips_y():
    canvas = Canvas(4, 3)
    canvas.stroke(np.array([[0.5, 0.5, 3.5, 0.5]]), (0.0, 0.0, 0.0, 1.0))
    np.testing.assert_array_equal(canvas.image[2, :, 3], [255, 255, 255, 255])
    assert np.all(canvas.image[:2] == 0)


def test_thick_stroke_covers_more_pixels():
    line = np.array([[2.0, 10.0, 18.0, 10.0]])
    thin = Canvas(20, 20)
    thin.stroke(line, (0.0, 0.0, 0.0, 1.0), width=1.0)
    thick = Canvas(20, 20)
    thick.stroke(line, (0.0, 0.0, 0.0, 1.0), width=4.0)
    assert np.count_nonzero(thick.image[..., 3]) > np.count_nonzero(thin.image[..., 3])


def test_stroke_skips_non_finite_and_offscreen():
    canvas = Canvas(10, 10)
    canvas.stroke(
        np.array([[np.nan, 1.0, 5.0, 5.0], [-50.0, -50.0, -20.0, -20.0]]),
        (0.0, 0.0, 0.0, 1.0),
    )
    assert np.all(canvas.image == 0)


def test_rasterize_replays_commands_in_order():
    lines = np.array([[0.0, 5.5, 10.0, 5.5]])
    image = rasterize(
        [
            FillRect(Rect(0.0, 0.0, 10.0, 10.0), (1.0, 1.0, 1.0, 1.0)),
            StrokeLines(lines, (0.0, 0.0, 0.0, 1.0)),
        ],
        10,
        10,
    )
    assert image.shape == (10, 10, 4)
    np.testing.assert_array_equal(image[4, 3], [0, 0, 0, 255])
    np.testing.assert_array_equal(image[0, 0], [255, 255, 255, 255])


@pytest.mark.parametrize("width", [1.0, 3.0])
def test_canvas_frame_strokes_all_four_edges(width):
    frame = Rect(0.0, 0.0, 10.0, 10.0)
    image = rasterize(
        [
            FillRect(frame, (0.0, 0.0, 0.0, 1.0)),
            StrokeLines(frame.border_array(), (1.0, 1.0, 1.0, 1.0), width),
        ],
        10,
        10,
    )
    red = image[..., 0]
    assert np.all(red[0, :] == 255)   # top
    assert np.all(red[-1, :] == 255)  # bottom
    assert np.all(red[:, 0] == 255)   # left
    assert np.all(red[:, -1] == 255)  # right
    assert np.all(red[4:6, 4:6] == 0)


def test_unknown_command():
    with pytest.raises(TypeError):
        rasterize(["circle"], 5, 5)


def test_empty_canvas_rejected():
    with pytest.raises(ValueError):
        Canvas(0, 10)


###############################################################################
# Export
###############################################################################


def test_format_lines():
    assert format_lines(np.array([[0.0, 0.5, 1.0, 2.0]])) == "0.0,0.5;1.0,2.0\n"
    assert format_lines(np.empty((0, 4))) == ""


def test_format_lines_uses_float32():
    text = format_lines(np.array([[0.1, 1.0 / 3.0, 100.0, 7.25]]))
    x0, rest = text.strip().split(",", 1)
    assert float(x0) == pytest.approx(0.1, abs=1e-7)
    assert text.count(";") == 1
    assert np.float32(float(x0)) == np.float32(0.1)


@pytest.fixture
def field_result():
    config = RunConfig(
        seed=17,
        width=60.0,
        height=40.0,
        mode="field",
        parameters=Parameters(columns=6, rows=4, particle_count=5),
    )
    return config, FlowFieldDrawing(config).draw()


def test_file_writer_outputs(tmp_path, field_result):
    config, result = field_result
    writer = FileWriter(tmp_path, config.seed)
    out = writer.save_result(result, config.width, config.height)

    assert out == tmp_path / "17"
    image = plt.imread(out / "image.png")
    assert image.shape[:2] == (40, 60)

    text = (out / "image.txt").read_text().splitlines()
    assert len(text) == result.line_count == 24
    assert text[0] == format_lines(result.lines[:1]).strip()

    with open(out / "parameters.json") as f:
        assert json.load(f) == result.parameters
    assert not (out / "lines.npz").exists()


def test_file_writer_npz(tmp_path, field_result):
    config, result = field_result
    out = FileWriter(tmp_path, config.seed).save_result(
        result, config.width, config.height, npz=True
    )
    loaded = load_lines_npz(out / "lines.npz")
    np.testing.assert_array_equal(loaded.lines, result.lines)
    assert loaded.meta["mode"] == "field"
    assert loaded.parameters == result.parameters


###############################################################################
# Logging
###############################################################################


def test_setup_logging_replaces_handlers(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    logger = setup_logging("DEBUG", log_file=log_file)
    try:
        assert logger.name == LOGGER_NAME
        assert not logger.propagate
        assert len(logger.handlers) == 2

        logging.getLogger("flow_sim.drawing").info("hello from a child")
        for handler in logger.handlers:
            handler.flush()
        assert "hello from a child" in log_file.read_text()

        logger = setup_logging("INFO")
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
