"""
File output for finished drawings.

Everything for one seed lands in ``<root>/<seed>/``:

    image.png        rasterized drawing
    image.txt        one ``x0,y0;x1,y1`` line per segment
    parameters.json  the Parameters record (camelCase keys)
    lines.npz        optional binary copy of the line array plus metadata
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from . import utils  # noqa: E402
from .render import rasterize  # noqa: E402

logger = logging.getLogger("flow_sim.export")


def format_lines(lines: np.ndarray) -> str:
    """Text form of a line array, coordinates printed as float32."""
    arr = np.asarray(lines, dtype=np.float32).reshape(-1, 4)
    return "".join(f"{x0},{y0};{x1},{y1}\n" for x0, y0, x1, y1 in arr)


class FileWriter:
    def __init__(self, root: str | os.PathLike[str], seed: int) -> None:
        self.root = Path(root)
        self.seed = int(seed)

    @property
    def output_path(self) -> Path:
        return self.root / str(self.seed)

    def create_directory(self) -> Path:
        path = self.output_path
        path.mkdir(parents=True, exist_ok=True)
        return path

    def save_image(self, image: np.ndarray) -> Path:
        path = self.create_directory() / "image.png"
        plt.imsave(path, np.ascontiguousarray(image))
        return path

    def save_lines(self, lines: np.ndarray) -> Path:
        path = self.create_directory() / "image.txt"
        logger.info("Saving %d lines to file", len(lines))
        path.write_text(format_lines(lines), encoding="utf-8")
        return path

    def save_parameters(self, parameters: Dict[str, Any]) -> Path:
        path = self.create_directory() / "parameters.json"
        with open(path, "w") as f:
            json.dump(parameters, f, indent=2)
        return path

    def save_result(
        self,
        result: utils.DrawingResult,
        width: float,
        height: float,
        *,
        npz: bool = False,
    ) -> Path:
        """Rasterize ``result`` and write every output file for this seed."""
        image = rasterize(result.commands, width, height)
        self.save_lines(result.lines)
        self.save_image(image)
        self.save_parameters(result.parameters or {})
        if npz:
            utils.save_lines_npz(self.output_path / "lines.npz", result)
        return self.output_path


__all__ = ["FileWriter", "format_lines"]
