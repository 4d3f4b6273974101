"""
Run configuration.

``Parameters`` is the reproducibility record written next to every drawing;
its file form uses camelCase keys, as written to parameters.json.
``RunConfig`` adds the canvas, drawing mode and styling around it.
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, List, Optional, Tuple

from . import utils
from .clipping import column_windows
from .errors import ConfigError
from .geometry import Rect
from .rng import U64_MAX

MODES = ("flow", "windowed", "field")

Color = Tuple[float, float, float, float]

WHITE: Color = (1.0, 1.0, 1.0, 1.0)
BLACK: Color = (0.0, 0.0, 0.0, 1.0)
WINDOW_STROKE: Color = (0.38, 0.37, 0.32, 1.0)

_CAMEL_KEYS = {
    "particle_count": "particleCount",
    "particle_loops": "particleLoops",
    "max_velocity": "maxVelocity",
    "columns": "columns",
    "rows": "rows",
    "vector_field_magnitude": "vectorFieldMagnitude",
    "noise_persistence": "noisePersistence",
}
_SNAKE_KEYS = {camel: snake for snake, camel in _CAMEL_KEYS.items()}


@dataclass(frozen=True)
class Parameters:
    """Simulation knobs shared by every drawing mode."""

    particle_count: int = 3000
    particle_loops: int = 2
    max_velocity: float = 8.0
    columns: int = 100
    rows: int = 100
    vector_field_magnitude: float = 6.0
    noise_persistence: float = 0.65

    def validate(self) -> "Parameters":
        if self.particle_count <= 0:
            raise ConfigError(f"particle_count must be > 0, got {self.particle_count}")
        if self.particle_loops < 0:
            raise ConfigError(f"particle_loops must be >= 0, got {self.particle_loops}")
        if self.max_velocity <= 0:
            raise ConfigError(f"max_velocity must be > 0, got {self.max_velocity}")
        if self.columns <= 0 or self.rows <= 0:
            raise ConfigError(
                f"columns and rows must be > 0, got {self.columns}x{self.rows}"
            )
        if self.vector_field_magnitude <= 0:
            raise ConfigError(
                f"vector_field_magnitude must be > 0, got {self.vector_field_magnitude}"
            )
        if self.noise_persistence <= 0:
            raise ConfigError(
                f"noise_persistence must be > 0, got {self.noise_persistence}"
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        """camelCase record, as written to parameters.json."""
        return {_CAMEL_KEYS[key]: value for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Parameters":
        """Accepts snake_case or camelCase keys; unknown keys are an error."""
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = _SNAKE_KEYS.get(key, key)
            if name not in known:
                raise ConfigError(f"Unknown parameter: {key}")
            kwargs[name] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class WindowLayout:
    """A row of equal clipping windows, see clipping.column_windows."""

    count: int = 5
    origin: Tuple[float, float] = (100.0, 100.0)
    size: Tuple[float, float] = (100.0, 1000.0)
    spacing: float = 75.0

    def rects(self) -> List[Rect]:
        return column_windows(self.count, self.origin, self.size, self.spacing)


@dataclass(frozen=True)
class RunConfig:
    seed: int = 0
    width: float = 1000.0
    height: float = 1200.0
    mode: str = "flow"
    parameters: Parameters = field(default_factory=Parameters)
    windows: WindowLayout = field(default_factory=WindowLayout)
    frame_canvas: bool = True
    line_width: float = 1.0
    record_warmup: bool = False
    max_steps_per_particle: Optional[int] = None
    octave_count: int = 8

    @property
    def rect(self) -> Rect:
        return Rect(0.0, 0.0, self.width, self.height)

    def validate(self) -> "RunConfig":
        if not 0 <= int(self.seed) <= U64_MAX:
            raise ConfigError(f"seed must be an unsigned 64-bit integer, got {self.seed}")
        if self.width < 1 or self.height < 1:
            raise ConfigError(
                f"canvas must be at least 1x1 pixels, got {self.width}x{self.height}"
            )
        if self.mode not in MODES:
            raise ConfigError(f"Unknown mode {self.mode!r}; expected one of {MODES}")
        if self.line_width <= 0:
            raise ConfigError(f"line_width must be > 0, got {self.line_width}")
        if self.octave_count <= 0:
            raise ConfigError(f"octave_count must be > 0, got {self.octave_count}")
        if self.max_steps_per_particle is not None and self.max_steps_per_particle <= 0:
            raise ConfigError(
                f"max_steps_per_particle must be > 0, got {self.max_steps_per_particle}"
            )
        if self.windows.count < 0:
            raise ConfigError(f"window count must be >= 0, got {self.windows.count}")
        self.parameters.validate()
        return self

    def with_seed(self, seed: int) -> "RunConfig":
        return replace(self, seed=int(seed))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["parameters"] = self.parameters.to_dict()
        data["windows"] = {
            "count": self.windows.count,
            "origin": list(self.windows.origin),
            "size": list(self.windows.size),
            "spacing": self.windows.spacing,
        }
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunConfig":
        data = dict(data)
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {sorted(unknown)}")
        if "parameters" in data:
            data["parameters"] = Parameters.from_dict(data["parameters"])
        if "windows" in data:
            win = dict(data["windows"])
            for key in ("origin", "size"):
                if key in win:
                    win[key] = tuple(float(v) for v in win[key])
            data["windows"] = WindowLayout(**win)
        return cls(**data)


def load_config(path: str | os.PathLike[str], **overrides: Any) -> RunConfig:
    """Read a JSON or TOML run config; keyword overrides win over the file."""
    data = utils.load_params(path)
    data.update({k: v for k, v in overrides.items() if v is not None})
    return RunConfig.from_dict(data)


__all__ = [
    "MODES",
    "WHITE",
    "BLACK",
    "WINDOW_STROKE",
    "Parameters",
    "WindowLayout",
    "RunConfig",
    "load_config",
]
