"""
Multi-octave value noise on a toroidal grid.

The base grid is white noise drawn from a SeededRandom stream. Each octave
resamples that base grid at a coarser period (2**octave cells) with bilinear
interpolation, wrapping around the grid edges. Octaves are then blended from
the coarsest down to the finest, each weighted by a persistence-decayed
amplitude, and the result is normalized by the total amplitude.

Grids are indexed ``[column, row]``. The base grid is filled column-major
(all rows of column 0, then column 1, ...); this order decides which random
draw lands in which cell and is therefore part of the reproducibility contract.
"""

from __future__ import annotations

import logging

import numpy as np
from numba import njit

from .rng import SeededRandom

logger = logging.getLogger("flow_sim.noise")

DEFAULT_OCTAVE_COUNT = 8

###############################################################################
# Kernels
###############################################################################


@njit(cache=True)
def _interpolate(x0: float, x1: float, alpha: float) -> float:
    return x0 * (1.0 - alpha) + alpha * x1


@njit(cache=True)
def _smooth_kernel(base: np.ndarray, octave: int) -> np.ndarray:
    width, height = base.shape
    period = 1 << octave
    frequency = 1.0 / period
    smoothed = np.zeros((width, height), dtype=np.float64)

    for i in range(width):
        i0 = (i // period) * period
        i1 = (i0 + period) % width
        h_blend = (i - i0) * frequency

        for j in range(height):
            j0 = (j // period) * period
            j1 = (j0 + period) % height
            v_blend = (j - j0) * frequency

            top = _interpolate(base[i0, j0], base[i1, j0], h_blend)
            bottom = _interpolate(base[i0, j1], base[i1, j1], h_blend)
            smoothed[i, j] = _interpolate(top, bottom, v_blend)

    return smoothed


###############################################################################
# Public API
###############################################################################


def white_noise(width: int, height: int, rng: SeededRandom) -> np.ndarray:
    """Column-major grid of independent uniform draws in [0, 1]."""
    base = np.empty((width, height), dtype=np.float64)
    for i in range(width):
        for j in range(height):
            base[i, j] = rng.uniform(0.0, 1.0, closed=True)
    return base


def smooth_noise(base: np.ndarray, octave: int) -> np.ndarray:
    """Resample ``base`` at period ``2**octave`` with toroidal wraparound."""
    if octave < 0:
        raise ValueError(f"octave must be non-negative, got {octave}")
    return _smooth_kernel(np.ascontiguousarray(base, dtype=np.float64), int(octave))


def blend_octaves(base: np.ndarray, octave_count: int, persistence: float) -> np.ndarray:
    """
    Weighted average of ``octave_count`` smoothed octaves of ``base``.

    Persistence 0 zeroes every amplitude and gives NaN. Values above 1 weight
    the fine octaves most.
    """
    octaves = [smooth_noise(base, octave) for octave in range(octave_count)]

    blended = np.zeros_like(base, dtype=np.float64)
    amplitude = 1.0
    total_amplitude = 0.0

    for octave in range(octave_count - 1, -1, -1):
        amplitude *= persistence
        total_amplitude += amplitude
        blended += octaves[octave] * amplitude

    with np.errstate(divide="ignore", invalid="ignore"):
        return blended / total_amplitude


def generate(
    width: int,
    height: int,
    persistence: float,
    rng: SeededRandom,
    octave_count: int = DEFAULT_OCTAVE_COUNT,
) -> np.ndarray:
    """Build a ``(width, height)`` noise grid with values in [0, 1]."""
    if width <= 0 or height <= 0:
        raise ValueError(f"noise grid must be non-empty, got {width}x{height}")
    base = white_noise(width, height, rng)
    return blend_octaves(base, octave_count, persistence)


class PerlinNoise:
    """Noise grid sized to a vector field, built once per run."""

    def __init__(
        self,
        width: int,
        height: int,
        persistence: float,
        rng: SeededRandom,
        octave_count: int = DEFAULT_OCTAVE_COUNT,
    ) -> None:
        self.width = width
        self.height = height
        self.persistence = persistence
        self.octave_count = octave_count
        self.grid = generate(width, height, persistence, rng, octave_count)
        logger.debug(
            "Noise %dx%d: min=%.4f max=%.4f mean=%.4f",
            width, height, self.grid.min(), self.grid.max(), self.grid.mean(),
        )

    @property
    def shape(self):
        return self.grid.shape

    def __getitem__(self, index):
        return self.grid[index]


__all__ = [
    "DEFAULT_OCTAVE_COUNT",
    "white_noise",
    "smooth_noise",
    "blend_octaves",
    "generate",
    "PerlinNoise",
]
