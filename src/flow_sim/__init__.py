"""
Flow-Field Drawing Library

This package traces particles through a seeded noise flow field:
- SeededRandom: deterministic random stream from a 64-bit seed
- PerlinNoise / VectorField: multi-octave noise and the flow grid built from it
- ParticleSimulator: constant-speed particles advected to the canvas edge
- CohenSutherland / Window: line clipping into rectangular windows
- FlowFieldDrawing: the orchestrator producing lines and drawing commands
"""

from .config import Parameters, RunConfig, WindowLayout
from .errors import ConfigError, DegenerateVectorError, FlowFieldError
from .rng import SeededRandom
from .geometry import Line, Rect
from .noise import PerlinNoise
from .vector_field import VectorField
from .particle import Particle, ParticleSimulator
from .clipping import CohenSutherland, RegionCode, Window
from .drawing import FlowFieldDrawing, run_model
from . import utils

__all__ = [
    # Pipeline
    "SeededRandom",
    "PerlinNoise",
    "VectorField",
    "Particle",
    "ParticleSimulator",
    "CohenSutherland",
    "RegionCode",
    "Window",
    "FlowFieldDrawing",
    "run_model",
    # Geometry
    "Line",
    "Rect",
    # Configuration classes
    "Parameters",
    "RunConfig",
    "WindowLayout",
    # Errors
    "FlowFieldError",
    "ConfigError",
    "DegenerateVectorError",
    # Utilities
    "utils",
]
