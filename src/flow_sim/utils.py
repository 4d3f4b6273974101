# src/flow_sim/utils.py
from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover
    tomllib = None  # type: ignore


@dataclass
class DrawingResult:
    """Common container for drawing outputs."""

    lines: np.ndarray
    commands: List[Any] = field(default_factory=list)
    parameters: Optional[Dict[str, Any]] = None
    meta: Optional[Dict[str, Any]] = None

    @property
    def line_count(self) -> int:
        return int(self.lines.shape[0])


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def save_lines_npz(
    path: str | os.PathLike[str], result: DrawingResult, *, overwrite: bool = True
) -> None:
    """Serialize a DrawingResult's line array and metadata to .npz."""
    out_dir = Path(path).parent
    out_dir.mkdir(parents=True, exist_ok=True)
    out: Dict[str, Any] = {"lines": np.asarray(result.lines, dtype=np.float64)}

    meta_clean = {}
    for key, value in (result.meta or {}).items():
        if isinstance(value, np.ndarray):
            out[key] = value
        else:
            meta_clean[key] = value
    out["meta"] = meta_clean
    out["parameters"] = result.parameters or {}

    if not overwrite and Path(path).exists():
        raise FileExistsError(f"{path} already exists")
    np.savez_compressed(path, **out)


def load_lines_npz(path: str | os.PathLike[str]) -> DrawingResult:
    """
    Load a .npz written by save_lines_npz into a DrawingResult (no commands).
    """
    data = np.load(path, allow_pickle=True)
    lines = data["lines"].astype(np.float64).reshape(-1, 4)

    def _unwrap(key):
        if key not in data:
            return {}
        raw = data[key]
        try:
            return raw.item()
        except ValueError:
            return raw

    meta = _unwrap("meta")
    for key in data.files:
        if key not in {"lines", "meta", "parameters"} and key not in meta:
            meta[key] = data[key]
    return DrawingResult(lines=lines, parameters=_unwrap("parameters"), meta=meta)


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load run parameters from JSON or TOML.
    """
    path = str(path)
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        if tomllib is None:
            raise RuntimeError("tomllib is unavailable; cannot parse TOML files")
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")
