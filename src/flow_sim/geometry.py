"""
Shared 2D geometry: points, lines, rectangles and vector helpers.

Points and vectors are plain ``(x, y)`` float tuples. Bulk line sets travel as
``(N, 4)`` float64 arrays laid out as ``[x0, y0, x1, y1]``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .errors import DegenerateVectorError

Point = Tuple[float, float]
Vector = Tuple[float, float]

TWO_PI = 2.0 * math.pi


@dataclass(frozen=True)
class Line:
    start: Point
    end: Point

    def rotate(self, angle: float) -> "Line":
        """Rotate the end point about the start point by ``angle`` radians."""
        ox, oy = self.start
        dx = self.end[0] - ox
        dy = self.end[1] - oy
        cos_a = math.cos(angle)
        sin_a = math.sin(angle)
        end = (ox + cos_a * dx - sin_a * dy, oy + sin_a * dx + cos_a * dy)
        return Line(self.start, end)

    def as_row(self) -> Tuple[float, float, float, float]:
        return (self.start[0], self.start[1], self.end[0], self.end[1])

    @classmethod
    def from_row(cls, row: Sequence[float]) -> "Line":
        return cls((float(row[0]), float(row[1])), (float(row[2]), float(row[3])))


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle. y grows upward, so ``top`` is ``y + height``."""

    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y

    @property
    def top(self) -> float:
        return self.y + self.height

    def borders(self) -> List[Line]:
        """Bottom, right, top and left edges, walking counter-clockwise."""
        bl = (self.left, self.bottom)
        br = (self.right, self.bottom)
        tr = (self.right, self.top)
        tl = (self.left, self.top)
        return [Line(bl, br), Line(br, tr), Line(tr, tl), Line(tl, bl)]

    def border_array(self) -> np.ndarray:
        return lines_to_array(self.borders())


def magnitude(v: Vector) -> float:
    return math.hypot(v[0], v[1])


def scaled_to(v: Vector, target: float) -> Vector:
    """
    Rescale ``v`` to length ``target``.

    Raises DegenerateVectorError when ``v`` is the zero vector, since no
    direction is defined for it.
    """
    length = magnitude(v)
    if length == 0.0:
        if target == 0.0:
            return (0.0, 0.0)
        raise DegenerateVectorError(
            f"cannot scale zero-length vector to magnitude {target}"
        )
    factor = target / length
    return (v[0] * factor, v[1] * factor)


def lines_to_array(lines: Iterable[Line]) -> np.ndarray:
    rows = [line.as_row() for line in lines]
    if not rows:
        return np.empty((0, 4), dtype=np.float64)
    return np.asarray(rows, dtype=np.float64)


__all__ = [
    "Point",
    "Vector",
    "Line",
    "Rect",
    "TWO_PI",
    "magnitude",
    "scaled_to",
    "lines_to_array",
]
