"""
Grid of flow directions derived from a noise field.

Each cell starts with the diagonal from its lower-left to its upper-right
corner. Applying noise rotates every diagonal about its start point by
``noise * 2*pi``; the rotated direction, rescaled to a fixed magnitude, is the
force a particle feels anywhere inside that cell.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

import numpy as np

from .errors import DegenerateVectorError
from .geometry import TWO_PI, Line, Point, Vector

logger = logging.getLogger("flow_sim.vector_field")


class VectorField:
    """
    Lines and forces stored as flat numpy buffers indexed ``[column, row]``.

    ``lines`` has shape (columns, rows, 4) as ``[x0, y0, x1, y1]`` and
    ``forces`` has shape (columns, rows, 2) once build_forces() has run.
    """

    def __init__(self, width: float, height: float, columns: int, rows: int) -> None:
        if columns <= 0 or rows <= 0:
            raise ValueError(f"grid must have positive dimensions, got {columns}x{rows}")
        if width <= 0 or height <= 0:
            raise ValueError(f"canvas must have positive size, got {width}x{height}")
        self.width = float(width)
        self.height = float(height)
        self.columns = int(columns)
        self.rows = int(rows)
        self.column_width = self.width / self.columns
        self.row_height = self.height / self.rows
        self.lines = np.zeros((self.columns, self.rows, 4), dtype=np.float64)
        self.forces: Optional[np.ndarray] = None

    # ------------------------------------------------------------------ build
    def build(self) -> None:
        """Fill every cell with its corner-to-corner diagonal."""
        cols = np.arange(self.columns, dtype=np.float64)[:, None]
        rows = np.arange(self.rows, dtype=np.float64)[None, :]
        self.lines[:, :, 0] = cols * self.column_width
        self.lines[:, :, 1] = rows * self.row_height
        self.lines[:, :, 2] = (cols + 1.0) * self.column_width
        self.lines[:, :, 3] = (rows + 1.0) * self.row_height
        self.forces = None

    def line(self, column: int, row: int) -> Line:
        return Line.from_row(self.lines[column, row])

    def apply_noise(self, noise) -> None:
        """Rotate each cell's line about its start by ``noise[cell] * 2*pi``."""
        grid = np.asarray(getattr(noise, "grid", noise), dtype=np.float64)
        if grid.shape != (self.columns, self.rows):
            raise ValueError(
                f"noise shape {grid.shape} does not match field {(self.columns, self.rows)}"
            )
        for column in range(self.columns):
            for row in range(self.rows):
                rotated = self.line(column, row).rotate(grid[column, row] * TWO_PI)
                self.lines[column, row] = rotated.as_row()
        self.forces = None

    def build_forces(self, magnitude: float) -> np.ndarray:
        """
        Direction of every line rescaled to ``magnitude``.

        A degenerate (zero-length) line raises DegenerateVectorError unless
        ``magnitude`` is 0.
        """
        dx = self.lines[:, :, 2] - self.lines[:, :, 0]
        dy = self.lines[:, :, 3] - self.lines[:, :, 1]
        lengths = np.hypot(dx, dy)
        if magnitude != 0.0 and np.any(lengths == 0.0):
            column, row = (int(v) for v in np.argwhere(lengths == 0.0)[0])
            raise DegenerateVectorError(
                f"vector field cell ({column}, {row}) has a zero-length line"
            )
        forces = np.zeros((self.columns, self.rows, 2), dtype=np.float64)
        with np.errstate(divide="ignore", invalid="ignore"):
            scale = np.where(lengths > 0.0, magnitude / lengths, 0.0)
        forces[:, :, 0] = dx * scale
        forces[:, :, 1] = dy * scale
        forces.setflags(write=False)
        self.forces = forces
        logger.debug("Built %d forces at magnitude %s", self.columns * self.rows, magnitude)
        return forces

    # ----------------------------------------------------------------- lookup
    def cell_index(self, point: Point) -> Tuple[int, int]:
        """
        Cell holding ``point``: floor division by the cell size, shifted down by
        one and clamped to the grid.
        """
        column = int(math.floor(point[0] / self.column_width)) - 1
        row = int(math.floor(point[1] / self.row_height)) - 1
        column = min(max(0, column), self.columns - 1)
        row = min(max(0, row), self.rows - 1)
        return column, row

    def vector_at(self, point: Point) -> Vector:
        if self.forces is None:
            raise RuntimeError("Forces have not been built. Call build_forces() first.")
        column, row = self.cell_index(point)
        force = self.forces[column, row]
        return (float(force[0]), float(force[1]))

    def line_array(self) -> np.ndarray:
        """Current cell lines as an (N, 4) array, column by column."""
        return self.lines.reshape(-1, 4).copy()


__all__ = ["VectorField"]
