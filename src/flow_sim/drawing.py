"""
Flow-field drawing orchestrator.

Runs the pipeline exactly once per drawing:

    noise -> vector field -> rotate by noise -> forces -> spawn particles
          -> warm-up passes -> run to edge -> line array [-> windows]

and packs the result as drawing commands plus a line list and the Parameters
record. Nothing here touches the filesystem; see export.FileWriter.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

import numpy as np

from . import utils
from .clipping import window_lines
from .config import BLACK, WHITE, WINDOW_STROKE, RunConfig
from .geometry import Rect
from .noise import PerlinNoise
from .particle import ParticleSimulator
from .render import FillRect, StrokeLines
from .rng import SeededRandom
from .vector_field import VectorField

logger = logging.getLogger("flow_sim.drawing")


class FlowFieldDrawing:
    """
    One seeded drawing.

    The random stream is re-created from the config seed for every drawing and
    consumed in a fixed order: the noise base grid first, then particle
    placement.
    """

    def __init__(self, config: Optional[RunConfig] = None) -> None:
        self.config = (config or RunConfig()).validate()
        self.parameters = self.config.parameters
        self.rect = self.config.rect
        self.rng = SeededRandom(self.config.seed)
        self.field: Optional[VectorField] = None
        self.simulator: Optional[ParticleSimulator] = None

    # ------------------------------------------------------------------ stages
    def build_field(self) -> VectorField:
        params = self.parameters
        self.rng = SeededRandom(self.config.seed)
        self.simulator = None

        logger.info("Building Perlin Noise")
        noise = PerlinNoise(
            params.columns,
            params.rows,
            params.noise_persistence,
            self.rng,
            octave_count=self.config.octave_count,
        )

        logger.info("Building Vector Field")
        field = VectorField(self.rect.width, self.rect.height, params.columns, params.rows)
        field.build()

        logger.info("Applying noise to vector field")
        field.apply_noise(noise)
        field.build_forces(params.vector_field_magnitude)

        self.field = field
        return field

    def create_flow_field(self) -> np.ndarray:
        """Trace every particle and return all segments as an (N, 4) array."""
        t_start = time.perf_counter()
        params = self.parameters
        field = self.build_field()

        simulator = ParticleSimulator(
            field,
            params.particle_count,
            params.max_velocity,
            params.particle_loops,
            record_warmup=self.config.record_warmup,
            max_steps_per_particle=self.config.max_steps_per_particle,
        )
        self.simulator = simulator

        logger.info("Creating %d particles", params.particle_count)
        simulator.spawn(self.rng, self.rect)

        logger.info("Applying vector forces to particles, %d times", params.particle_loops)
        simulator.warm_up()

        logger.info("Moving particles until they hit the edge")
        simulator.run_to_edge()

        lines = simulator.lines()
        logger.info(
            "Traced %d segments in %.2fs", lines.shape[0], time.perf_counter() - t_start
        )
        return lines

    # ---------------------------------------------------------------- drawings
    def _result(self, lines, background, stroke, kind) -> utils.DrawingResult:
        commands = [
            FillRect(self.rect, background),
            StrokeLines(lines, stroke, self.config.line_width),
        ]
        meta = {
            "mode": kind,
            "seed": self.config.seed,
            "width": self.rect.width,
            "height": self.rect.height,
            "line_count": int(lines.shape[0]),
        }
        if self.simulator is not None:
            meta["stalled"] = self.simulator.stalled
            meta["exhausted"] = self.simulator.exhausted
            meta["steps_taken"] = self.simulator.steps_taken
        return utils.DrawingResult(
            lines=lines,
            commands=commands,
            parameters=self.parameters.to_dict(),
            meta=meta,
        )

    def draw_flow_field(self) -> utils.DrawingResult:
        lines = self.create_flow_field()
        return self._result(lines, WHITE, BLACK, "flow")

    def draw_windowed_flow_field(
        self, windows: Optional[Sequence[Rect]] = None
    ) -> utils.DrawingResult:
        """Clip the trace into each window, then frame the windows and canvas."""
        if windows is None:
            windows = self.config.windows.rects()
        lines = self.create_flow_field()

        logger.info("Clipping %d segments into %d windows", lines.shape[0], len(windows))
        windowed = window_lines(lines, windows)
        if self.config.frame_canvas:
            windowed = np.vstack([windowed, self.rect.border_array()])
        return self._result(windowed, BLACK, WINDOW_STROKE, "windowed")

    def draw_vector_field(self) -> utils.DrawingResult:
        """The rotated field lines themselves, for inspecting a seed's flow."""
        field = self.build_field()
        return self._result(field.line_array(), WHITE, BLACK, "field")

    def draw(self) -> utils.DrawingResult:
        mode = self.config.mode
        if mode == "flow":
            return self.draw_flow_field()
        if mode == "windowed":
            return self.draw_windowed_flow_field()
        if mode == "field":
            return self.draw_vector_field()
        raise ValueError(f"Unknown mode: {mode}")


def run_model(config: RunConfig | dict | None = None) -> utils.DrawingResult:
    """
    Build a single drawing from a RunConfig (or a dict of its fields).
    """
    if config is None:
        config = RunConfig()
    elif isinstance(config, dict):
        config = RunConfig.from_dict(config)
    return FlowFieldDrawing(config).draw()


__all__ = ["FlowFieldDrawing", "run_model"]
