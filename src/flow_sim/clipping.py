"""
Cohen-Sutherland line clipping against axis-aligned rectangles.

Region codes are computed with an exclusive chain (left, else right, else
bottom, else top), so a point beyond two edges only carries the first one that
matches, where textbook Cohen-Sutherland ORs every violated edge. The chain
decides which boundary a corner point is clipped against first. After a point
moves onto that boundary its code is recomputed and any second violation is
clipped on the next pass.

Reference: https://www.geeksforgeeks.org/line-clipping-set-1-cohen-sutherland-algorithm/
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from numba import njit

from .geometry import Line, Point, Rect

###############################################################################
# Region codes
###############################################################################


class RegionCode(enum.IntFlag):
    INSIDE = 0  # 0000
    LEFT = 1    # 0001
    RIGHT = 2   # 0010
    BOTTOM = 4  # 0100
    TOP = 8     # 1000


# Kernel copies of the flags; numba cannot read IntFlag members.
_INSIDE = 0
_LEFT = 1
_RIGHT = 2
_BOTTOM = 4
_TOP = 8

# Each pass moves one endpoint onto an edge line; with exact arithmetic an
# endpoint moves at most twice (once per axis), so four passes decide every
# segment. Past the bound a segment still bouncing between corner edges on
# rounding error is rejected.
_MAX_PASSES = 8


###############################################################################
# Kernels
###############################################################################


@njit(cache=True)
def _compute_code(x, y, xmin, ymin, xmax, ymax):
    if x < xmin:
        return _LEFT
    elif x > xmax:
        return _RIGHT
    elif y < ymin:
        return _BOTTOM
    elif y > ymax:
        return _TOP
    return _INSIDE


@njit(cache=True)
def _initial_sweep(x0, y0, x1, y1, xmin, ymin, xmax, ymax):
    """False when both endpoints lie beyond the same single edge."""
    if x0 < xmin and x1 < xmin:
        return False
    if x0 > xmax and x1 > xmax:
        return False
    if y0 < ymin and y1 < ymin:
        return False
    if y0 > ymax and y1 > ymax:
        return False
    return True


@njit(cache=True)
def _clip_segment(x0, y0, x1, y1, xmin, ymin, xmax, ymax):
    """
    Returns (accepted, x0, y0, x1, y1). Rejected segments come back with their
    input coordinates and accepted == False.
    """
    if not _initial_sweep(x0, y0, x1, y1, xmin, ymin, xmax, ymax):
        return False, x0, y0, x1, y1

    sx, sy, ex, ey = x0, y0, x1, y1
    start_code = _compute_code(sx, sy, xmin, ymin, xmax, ymax)
    end_code = _compute_code(ex, ey, xmin, ymin, xmax, ymax)

    for _ in range(_MAX_PASSES):
        if start_code == _INSIDE and end_code == _INSIDE:
            return True, sx, sy, ex, ey
        if start_code & end_code != 0:
            return False, x0, y0, x1, y1

        clip_start = start_code != _INSIDE
        outside_code = start_code if clip_start else end_code

        if outside_code & _TOP:
            if ey == sy:
                return False, x0, y0, x1, y1
            x = sx + (ex - sx) * (ymax - sy) / (ey - sy)
            y = ymax
        elif outside_code & _BOTTOM:
            if ey == sy:
                return False, x0, y0, x1, y1
            x = sx + (ex - sx) * (ymin - sy) / (ey - sy)
            y = ymin
        elif outside_code & _RIGHT:
            if ex == sx:
                return False, x0, y0, x1, y1
            y = sy + (ey - sy) * (xmax - sx) / (ex - sx)
            x = xmax
        else:
            if ex == sx:
                return False, x0, y0, x1, y1
            y = sy + (ey - sy) * (xmin - sx) / (ex - sx)
            x = xmin

        if clip_start:
            sx, sy = x, y
            start_code = _compute_code(sx, sy, xmin, ymin, xmax, ymax)
        else:
            ex, ey = x, y
            end_code = _compute_code(ex, ey, xmin, ymin, xmax, ymax)

    return False, x0, y0, x1, y1


@njit(cache=True)
def _clip_lines_kernel(lines, xmin, ymin, xmax, ymax):
    n = lines.shape[0]
    out = np.empty((n, 4), dtype=np.float64)
    count = 0
    for i in range(n):
        accepted, x0, y0, x1, y1 = _clip_segment(
            lines[i, 0], lines[i, 1], lines[i, 2], lines[i, 3], xmin, ymin, xmax, ymax
        )
        if accepted:
            out[count, 0] = x0
            out[count, 1] = y0
            out[count, 2] = x1
            out[count, 3] = y1
            count += 1
    return out[:count]


###############################################################################
# Public API
###############################################################################


def _bounds(rect: Rect) -> Tuple[float, float, float, float]:
    return float(rect.left), float(rect.bottom), float(rect.right), float(rect.top)


def compute_code(point: Point, rect: Rect) -> RegionCode:
    return RegionCode(_compute_code(float(point[0]), float(point[1]), *_bounds(rect)))


def initial_sweep(line: Line, rect: Rect) -> bool:
    return bool(_initial_sweep(*(float(v) for v in line.as_row()), *_bounds(rect)))


def clip(line: Line, rect: Rect) -> Optional[Line]:
    """Clip ``line`` to ``rect``; None when no part of it is inside."""
    accepted, x0, y0, x1, y1 = _clip_segment(
        *(float(v) for v in line.as_row()), *_bounds(rect)
    )
    if not accepted:
        return None
    return Line((x0, y0), (x1, y1))


def clip_lines(lines: np.ndarray, rect: Rect) -> np.ndarray:
    """Clip an (N, 4) line array, dropping rejected segments."""
    arr = np.ascontiguousarray(lines, dtype=np.float64).reshape(-1, 4)
    return _clip_lines_kernel(arr, *_bounds(rect))


class CohenSutherland:
    """Clipper bound to a single rectangle."""

    def __init__(self, rect: Rect) -> None:
        self.rect = rect

    def compute_code(self, point: Point) -> RegionCode:
        return compute_code(point, self.rect)

    def clip(self, line: Line) -> Optional[Line]:
        return clip(line, self.rect)

    def clip_lines(self, lines: np.ndarray) -> np.ndarray:
        return clip_lines(lines, self.rect)


###############################################################################
# Windows
###############################################################################


@dataclass
class Window:
    rect: Rect
    lines: np.ndarray = field(default_factory=lambda: np.empty((0, 4), dtype=np.float64))

    def clipped(self) -> np.ndarray:
        """Lines clipped to the window, followed by its four borders."""
        inside = clip_lines(self.lines, self.rect)
        return np.vstack([inside, self.rect.border_array()])


def window_lines(lines: np.ndarray, windows: Sequence[Rect]) -> np.ndarray:
    """Clip ``lines`` independently against each window and concatenate."""
    parts = [Window(rect, lines).clipped() for rect in windows]
    if not parts:
        return np.empty((0, 4), dtype=np.float64)
    return np.vstack(parts)


def column_windows(
    count: int = 5,
    origin: Tuple[float, float] = (100.0, 100.0),
    size: Tuple[float, float] = (100.0, 1000.0),
    spacing: float = 75.0,
) -> List[Rect]:
    """
    A row of ``count`` equal windows, ``spacing`` apart, starting at ``origin``.

    The defaults give five 100x1000 columns at x = 100, 275, 450, 625, 800.
    """
    if count < 0:
        raise ValueError(f"window count must be non-negative, got {count}")
    width, height = size
    step = width + spacing
    return [
        Rect(origin[0] + i * step, origin[1], width, height) for i in range(count)
    ]


__all__ = [
    "RegionCode",
    "CohenSutherland",
    "compute_code",
    "initial_sweep",
    "clip",
    "clip_lines",
    "Window",
    "window_lines",
    "column_windows",
]
