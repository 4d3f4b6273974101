"""
Drawing commands and an RGBA rasterizer.

The orchestrator only emits commands (fill a rectangle, stroke a line list).
``rasterize`` replays them into a ``(height, width, 4)`` uint8 buffer. Canvas
coordinates grow upward, so canvas y maps to image row ``floor(height - y)``;
the canvas edges ``y == 0`` and ``x == width`` land on the last row and column.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import numpy as np
from numba import njit, prange

from .geometry import Rect

Color = Tuple[float, float, float, float]


@dataclass(frozen=True)
class FillRect:
    rect: Rect
    color: Color


@dataclass(frozen=True, eq=False)
class StrokeLines:
    lines: np.ndarray
    color: Color
    width: float = 1.0


def to_rgba8(color: Sequence[float]) -> np.ndarray:
    """(r, g, b[, a]) floats in [0, 1] to a uint8 RGBA array."""
    rgba = list(color) + [1.0] * (4 - len(color))
    return np.array(
        [int(round(min(max(c, 0.0), 1.0) * 255)) for c in rgba[:4]], dtype=np.uint8
    )


@njit(parallel=True, cache=True)
def _stroke_kernel(image, lines, rgba, half_width):
    """
    Paint every segment by stamping along it every half pixel.

    Segments are independent; concurrent writes of the same colour to a shared
    pixel are harmless.
    """
    H, W = image.shape[0], image.shape[1]
    n_lines = lines.shape[0]

    for i in prange(n_lines):
        x0 = lines[i, 0]
        y0 = H - lines[i, 1]
        x1 = lines[i, 2]
        y1 = H - lines[i, 3]
        finite = np.isfinite(x0) and np.isfinite(y0) and np.isfinite(x1) and np.isfinite(y1)

        dx = x1 - x0
        dy = y1 - y0
        samples = 0
        if finite:
            samples = int(math.ceil(math.sqrt(dx * dx + dy * dy) * 2.0)) + 1

        for k in range(samples):
            t = k / (samples - 1) if samples > 1 else 0.0
            cx = x0 + t * dx
            cy = y0 + t * dy

            # Thin strokes: single pixel. Samples on the far canvas edges
            # (x == W, or canvas y == 0) belong to the last column / row.
            if half_width < 0.75:
                if 0.0 <= cx <= W and 0.0 <= cy <= H:
                    px = min(int(math.floor(cx)), W - 1)
                    py = min(int(math.floor(cy)), H - 1)
                    for c in range(4):
                        image[py, px, c] = rgba[c]
                continue

            r_sq = half_width * half_width
            px_min = max(0, int(math.floor(cx - half_width)))
            px_max = min(W, int(math.ceil(cx + half_width)) + 1)
            py_min = max(0, int(math.floor(cy - half_width)))
            py_max = min(H, int(math.ceil(cy + half_width)) + 1)
            for py in range(py_min, py_max):
                for px in range(px_min, px_max):
                    ddx = px + 0.5 - cx
                    ddy = py + 0.5 - cy
                    if ddx * ddx + ddy * ddy <= r_sq:
                        for c in range(4):
                            image[py, px, c] = rgba[c]


class Canvas:
    """In-memory RGBA pixel buffer of a fixed size."""

    def __init__(self, width: float, height: float) -> None:
        self.width = int(width)
        self.height = int(height)
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"canvas must be at least 1x1 pixels, got {width}x{height}")
        self.image = np.zeros((self.height, self.width, 4), dtype=np.uint8)

    def fill(self, rect: Rect, color: Color) -> None:
        col_min = max(0, int(math.floor(rect.left)))
        col_max = min(self.width, int(math.ceil(rect.right)))
        row_min = max(0, int(math.floor(self.height - rect.top)))
        row_max = min(self.height, int(math.ceil(self.height - rect.bottom)))
        if col_min < col_max and row_min < row_max:
            self.image[row_min:row_max, col_min:col_max] = to_rgba8(color)

    def stroke(self, lines: np.ndarray, color: Color, width: float = 1.0) -> None:
        arr = np.ascontiguousarray(lines, dtype=np.float64).reshape(-1, 4)
        if arr.shape[0] == 0:
            return
        _stroke_kernel(self.image, arr, to_rgba8(color), 0.5 * float(width))

    def apply(self, command) -> None:
        if isinstance(command, FillRect):
            self.fill(command.rect, command.color)
        elif isinstance(command, StrokeLines):
            self.stroke(command.lines, command.color, command.width)
        else:
            raise TypeError(f"Unknown drawing command: {type(command).__name__}")


def rasterize(commands: Iterable, width: float, height: float) -> np.ndarray:
    """Replay drawing commands onto a fresh transparent canvas."""
    canvas = Canvas(width, height)
    for command in commands:
        canvas.apply(command)
    return canvas.image


__all__ = ["FillRect", "StrokeLines", "Canvas", "rasterize", "to_rgba8"]
